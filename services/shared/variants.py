from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PathLayout(str, Enum):
    FILE_NAME = "file_name"
    USER_APP = "user_app"
    RANDOM = "random"


@dataclass(frozen=True)
class IngestVariant:
    """Routing rules for one callable: which keys are control fields and how the key is built."""

    function_name: str
    layout: PathLayout
    probe_write_access: bool
    file_name_key: str | None = None
    folder_prefix_key: str | None = None
    app_id_key: str | None = None
    user_id_key: str | None = None
    payload_key: str | None = None
    required_keys: tuple[str, ...] = ()

    @property
    def reserved_keys(self) -> tuple[str, ...]:
        keys = (
            self.file_name_key,
            self.folder_prefix_key,
            self.app_id_key,
            self.user_id_key,
            self.payload_key,
        )
        return tuple(key for key in keys if key)


ATTRIBUTION = IngestVariant(
    function_name="saveAttributionData",
    layout=PathLayout.FILE_NAME,
    probe_write_access=False,
    file_name_key="_firebaseFunction_fileName",
    folder_prefix_key="_firebaseFunction_folderPrefix",
    required_keys=("_firebaseFunction_fileName", "_firebaseFunction_folderPrefix"),
)

USER_EVENT = IngestVariant(
    function_name="saveUserEvent",
    layout=PathLayout.USER_APP,
    probe_write_access=True,
    folder_prefix_key="folderPrefix",
    app_id_key="appId",
    user_id_key="userPseudoID",
    payload_key="payload",
    required_keys=("userPseudoID", "folderPrefix"),
)

RAW = IngestVariant(
    function_name="saveRawData",
    layout=PathLayout.RANDOM,
    probe_write_access=True,
    payload_key="payload",
)

VARIANTS: dict[str, IngestVariant] = {
    variant.function_name: variant for variant in (ATTRIBUTION, USER_EVENT, RAW)
}

from __future__ import annotations

from google.cloud import storage


class StorageClient:
    def __init__(self, project_id: str | None = None):
        self.client = storage.Client(project=project_id or None)

    def upload_bytes(self, bucket_name: str, object_name: str, payload: bytes, content_type: str) -> str:
        bucket = self.client.bucket(bucket_name)
        # No chunk_size: payloads this small go out as a single multipart request.
        blob = bucket.blob(object_name, chunk_size=None)
        blob.upload_from_string(payload, content_type=content_type)
        return f"gs://{bucket_name}/{object_name}"

    def delete_object(self, bucket_name: str, object_name: str) -> None:
        self.client.bucket(bucket_name).blob(object_name).delete()

import pytest

from services.shared.contracts import CallableRequest, CallableResponse, SaveResult


def test_save_result_serializes_file_path_alias() -> None:
    response = CallableResponse(result=SaveResult(file_path="gs://bucket/orders/x.json"))
    assert response.model_dump(by_alias=True) == {"result": {"success": True, "filePath": "gs://bucket/orders/x.json"}}


def test_save_result_requires_gs_uri() -> None:
    with pytest.raises(ValueError):
        SaveResult(file_path="bucket/orders/x.json")


def test_callable_request_allows_null_data() -> None:
    assert CallableRequest.model_validate({"data": None}).data is None

"""Unit tests for DynamoDBImageMetadata repository."""

from collections.abc import Callable
from typing import Any

import pytest
from botocore.exceptions import ClientError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter
from core.infrastructure.aws.dynamodb_metadata import DynamoDBImageMetadata
from core.models.errors import MetadataStoreError, NotFoundError
from core.models.image import ImageRecord


class DummyAdapter:
    """Minimal DynamoDBAdapter stub."""

    put_item: Callable[..., Any]
    get_item: Callable[..., dict[str, Any]]
    update_item: Callable[..., dict[str, Any]]
    delete_item: Callable[..., Any]

    def __init__(self) -> None:
        self.put_item = lambda **_: {}
        self.get_item = lambda **_: {}
        self.update_item = lambda **_: {}
        self.delete_item = lambda **_: {}


def client_error(code: str, operation: str) -> Callable[..., Any]:
    def _raise(**_: Any) -> Any:
        raise ClientError({"Error": {"Code": code}}, operation)

    return _raise


class TestDynamoDBImageMetadata:
    def test_put_record_client_error(self) -> None:
        adapter = DummyAdapter()
        adapter.put_item = client_error("ProvisionedThroughputExceededException", "PutItem")
        repo = DynamoDBImageMetadata(adapter)

        with pytest.raises(MetadataStoreError) as exc_info:
            repo.put_record(record=ImageRecord(name="a.png", bucket="b"))

        assert exc_info.value.error_code == "METADATA_PUT_FAILED"

    def test_put_record_unexpected_exception(self) -> None:
        adapter = DummyAdapter()
        adapter.put_item = lambda **_: (_ for _ in ()).throw(Exception("boom"))
        repo = DynamoDBImageMetadata(adapter)

        with pytest.raises(MetadataStoreError):
            repo.put_record(record=ImageRecord(name="a.png", bucket="b"))

    def test_fetch_record_not_found(self) -> None:
        assert DynamoDBImageMetadata(DummyAdapter()).fetch_record(name="a.png") is None

    def test_fetch_record_malformed_item(self) -> None:
        adapter = DummyAdapter()
        adapter.get_item = lambda **_: {"Item": {"Bucket": "b"}}

        with pytest.raises(MetadataStoreError):
            DynamoDBImageMetadata(adapter).fetch_record(name="a.png")

    def test_update_missing_record_raises_not_found(self) -> None:
        adapter = DummyAdapter()
        adapter.update_item = client_error("ConditionalCheckFailedException", "UpdateItem")

        with pytest.raises(NotFoundError) as exc_info:
            DynamoDBImageMetadata(adapter).update_description(name="a.png", description="d")

        assert exc_info.value.error_code == "RECORD_NOT_FOUND"

    def test_update_other_client_error(self) -> None:
        adapter = DummyAdapter()
        adapter.update_item = client_error("InternalServerError", "UpdateItem")

        with pytest.raises(MetadataStoreError):
            DynamoDBImageMetadata(adapter).update_description(name="a.png", description="d")

    def test_remove_record_client_error(self) -> None:
        adapter = DummyAdapter()
        adapter.delete_item = client_error("InternalServerError", "DeleteItem")

        with pytest.raises(MetadataStoreError) as exc_info:
            DynamoDBImageMetadata(adapter).remove_record(name="a.png")

        assert exc_info.value.error_code == "METADATA_DELETE_FAILED"


class TestDynamoDBImageMetadataWithMoto:
    @pytest.fixture
    def repo(self, dynamodb_table) -> DynamoDBImageMetadata:
        return DynamoDBImageMetadata(
            DynamoDBAdapter(table_name="ImagesTable", region_name="us-east-1")
        )

    def test_put_and_fetch(self, repo) -> None:
        record = ImageRecord(name="my photo.png", bucket="photos")

        repo.put_record(record=record)

        assert repo.fetch_record(name="my photo.png") == record

    def test_put_is_idempotent(self, repo, dynamodb_table) -> None:
        record = ImageRecord(name="a.png", bucket="photos")

        repo.put_record(record=record)
        repo.put_record(record=record)

        assert dynamodb_table.scan()["Count"] == 1

    def test_update_description(self, repo, dynamodb_put_item) -> None:
        dynamodb_put_item({"ImageName": "a.png", "Bucket": "photos"})

        updated = repo.update_description(name="a.png", description="Sunset")

        assert updated == ImageRecord(name="a.png", bucket="photos", description="Sunset")
        assert repo.fetch_record(name="a.png") == updated

    def test_update_does_not_create_missing_record(self, repo, dynamodb_get_item) -> None:
        with pytest.raises(NotFoundError):
            repo.update_description(name="ghost.png", description="Boo")

        assert dynamodb_get_item("ghost.png") is None

    def test_remove_record_is_idempotent(self, repo, dynamodb_put_item, dynamodb_get_item) -> None:
        dynamodb_put_item({"ImageName": "a.png", "Bucket": "photos"})

        repo.remove_record(name="a.png")
        repo.remove_record(name="a.png")

        assert dynamodb_get_item("a.png") is None

import pytest

from core.models.errors import MetadataStoreError
from core.models.image import ImageRecord
from handlers.process_delete import handler as process_delete
from handlers.process_delete.service import DeleteSyncService


class FailingMetadata:
    def remove_record(self, **_) -> None:
        raise MetadataStoreError(message="table unavailable")


class TestProcessDeleteHandler:
    def test_deletes_records_and_skips_malformed(
        self,
        monkeypatch,
        metadata,
        lambda_context,
        topic_record,
        storage_event,
    ) -> None:
        metadata.put_record(record=ImageRecord(name="old cat.png", bucket="photos"))
        monkeypatch.setattr(process_delete, "_service", lambda: DeleteSyncService(metadata=metadata))
        event = {
            "Records": [
                topic_record("{not json"),
                topic_record(storage_event("ObjectRemoved:Delete", "old+cat.png")),
                topic_record(storage_event("ObjectCreated:Put", "new.png")),
            ]
        }

        response = process_delete.handler(event, lambda_context)

        assert response == {"deleted": 1}
        assert metadata.fetch_record(name="old cat.png") is None

    def test_malformed_sibling_in_one_notification_is_skipped(
        self,
        monkeypatch,
        metadata,
        lambda_context,
        topic_record,
    ) -> None:
        metadata.put_record(record=ImageRecord(name="good.png", bucket="photos"))
        monkeypatch.setattr(process_delete, "_service", lambda: DeleteSyncService(metadata=metadata))
        message = {
            "Records": [
                {"eventName": "Bogus:Thing", "s3": {"bucket": {"name": "photos"}, "object": {"key": "x.png"}}},
                {
                    "eventName": "ObjectRemoved:Delete",
                    "s3": {"bucket": {"name": "photos"}, "object": {"key": "good.png"}},
                },
            ]
        }

        assert process_delete.handler({"Records": [topic_record(message)]}, lambda_context) == {"deleted": 1}
        assert metadata.fetch_record(name="good.png") is None

    def test_store_failure_fails_invocation(
        self,
        monkeypatch,
        lambda_context,
        topic_record,
        storage_event,
    ) -> None:
        monkeypatch.setattr(
            process_delete,
            "_service",
            lambda: DeleteSyncService(metadata=FailingMetadata()),
        )
        event = {"Records": [topic_record(storage_event("ObjectRemoved:Delete", "a.png"))]}

        with pytest.raises(MetadataStoreError):
            process_delete.handler(event, lambda_context)

    def test_deletes_from_dynamodb(
        self,
        dynamodb_put_item,
        dynamodb_get_item,
        lambda_context,
        topic_record,
        storage_event,
    ) -> None:
        process_delete._service.cache_clear()
        dynamodb_put_item({"ImageName": "a b.png", "Bucket": "photo-album-images"})
        event = {"Records": [topic_record(storage_event("ObjectRemoved:Delete", "a%20b.png"))]}

        try:
            process_delete.handler(event, lambda_context)
        finally:
            process_delete._service.cache_clear()

        assert dynamodb_get_item("a b.png") is None

import pytest
from botocore.exceptions import ClientError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter
from core.models.errors import ConfigurationError


def make_adapter() -> DynamoDBAdapter:
    return DynamoDBAdapter(table_name="ImagesTable", region_name="us-east-1")


class TestDynamoDBAdapter:
    def test_init_missing_table_name(self) -> None:
        with pytest.raises(ConfigurationError):
            DynamoDBAdapter(table_name="")

    def test_put_and_get_item_success(self, dynamodb_table) -> None:
        adapter = make_adapter()

        adapter.put_item(item={"ImageName": "cat.png", "Bucket": "photos"})
        response = adapter.get_item(key={"ImageName": "cat.png"})

        assert response["Item"] == {"ImageName": "cat.png", "Bucket": "photos"}

    def test_update_item_returns_new_attributes(self, dynamodb_table) -> None:
        adapter = make_adapter()
        adapter.put_item(item={"ImageName": "cat.png", "Bucket": "photos"})

        response = adapter.update_item(
            key={"ImageName": "cat.png"},
            update_expression="SET #d = :d",
            expression_names={"#d": "Description"},
            expression_values={":d": "Sleepy"},
        )

        assert response["Attributes"]["Description"] == "Sleepy"

    def test_update_item_condition_failure_bubbles(self, dynamodb_table) -> None:
        adapter = make_adapter()

        with pytest.raises(ClientError) as exc_info:
            adapter.update_item(
                key={"ImageName": "missing.png"},
                update_expression="SET #d = :d",
                expression_names={"#d": "Description", "#n": "ImageName"},
                expression_values={":d": "x"},
                condition_expression="attribute_exists(#n)",
            )

        assert exc_info.value.response["Error"]["Code"] == "ConditionalCheckFailedException"

    def test_delete_item_success(self, dynamodb_table) -> None:
        adapter = make_adapter()

        adapter.put_item(item={"ImageName": "cat.png"})
        adapter.delete_item(key={"ImageName": "cat.png"})

        assert "Item" not in adapter.get_item(key={"ImageName": "cat.png"})

    def test_get_item_bubbles_client_error(self, monkeypatch, dynamodb_table) -> None:
        adapter = make_adapter()

        def raise_error(**_):
            raise ClientError({"Error": {"Code": "InternalError"}}, "GetItem")

        monkeypatch.setattr(adapter.table, "get_item", raise_error)

        with pytest.raises(ClientError):
            adapter.get_item(key={"ImageName": "cat.png"})

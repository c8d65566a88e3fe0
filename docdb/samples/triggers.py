"""
Triggers sample.

The pre-create trigger that checks each new item carries a timestamp is a
$jsonSchema validator on the collection: the server rejects documents
without a date-typed timestamp (code 121, DocumentValidationFailure), and
the client stamps one before inserting. The post-create trigger that keeps
partition metadata current is a follow-up $inc/$push on a metadata document
in the same partition.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pymongo.collection import Collection
from pymongo.errors import WriteError

from .console import SampleConsole

COLLECTION_NAME = "trigger-sample"
PARTITION_KEY = "Category"
TIMESTAMP_FIELD = "timestamp"
METADATA_ID = "_metadata"
VALIDATION_FAILED = 121

TIMESTAMP_VALIDATOR = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": [PARTITION_KEY, TIMESTAMP_FIELD],
        "properties": {
            PARTITION_KEY: {"bsonType": "string"},
            TIMESTAMP_FIELD: {"bsonType": "date"},
        },
    }
}

TODO_ITEM = {
    "Category": "Personal",
    "Name": "Groceries",
    "Description": "Pick up strawberries",
    "IsComplete": False,
}


def pre_validate_timestamp(item: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Copy of item with a timestamp, added only when missing."""
    document = dict(item)
    if TIMESTAMP_FIELD not in document:
        document[TIMESTAMP_FIELD] = now or datetime.now(timezone.utc)
    return document


def post_update_metadata(collection: Collection, document: Dict[str, Any]) -> None:
    """Count the new item in its partition's metadata document."""
    collection.update_one(
        {"_id": METADATA_ID, PARTITION_KEY: document[PARTITION_KEY]},
        {
            "$set": {TIMESTAMP_FIELD: document[TIMESTAMP_FIELD]},
            "$inc": {"CreatedItems": 1},
            "$push": {"CreatedNames": document.get("Name")},
        },
        upsert=True,
    )


def create_item(collection: Collection, item: Dict[str, Any]) -> Dict[str, Any]:
    """Insert item with both triggers applied; returns the stored document."""
    document = pre_validate_timestamp(item)
    result = collection.insert_one(document)
    document["_id"] = result.inserted_id
    post_update_metadata(collection, document)
    return document


def insert_without_timestamp(console: SampleConsole, collection: Collection) -> bool:
    """Try the raw item; returns True when the validator rejected it."""
    try:
        result = collection.insert_one(dict(TODO_ITEM))
    except WriteError as e:
        if e.code != VALIDATION_FAILED:
            raise
        console.narrate(f"Rejected by the validator ({e.code}): item has no {TIMESTAMP_FIELD}")
        return True

    console.narrate("Server accepted the item without a timestamp (validation not enforced)")
    collection.delete_one({"_id": result.inserted_id})
    return False


def run(console: SampleConsole) -> Dict[str, Any]:
    database = console.database
    console.fresh_collection(COLLECTION_NAME)
    collection = database.create_collection(COLLECTION_NAME, validator=TIMESTAMP_VALIDATOR)
    console.log_and_wait("Created collection with timestamp validator, request charge: ")

    rejected = insert_without_timestamp(console, collection)
    console.wait()

    created = create_item(collection, TODO_ITEM)
    console.log_and_wait("Created item with triggers applied, request charge: ")
    console.show(created)

    metadata = collection.find_one({"_id": METADATA_ID, PARTITION_KEY: created[PARTITION_KEY]})
    console.narrate(f"Partition metadata: {metadata}")
    console.wait()

    database.drop_collection(COLLECTION_NAME)
    return {"rejected": rejected, "item": created, "metadata": metadata}

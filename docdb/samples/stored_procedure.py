"""
Stored procedure sample.

Server-side procedures scoped to one partition become a multi-statement
transaction here: the to-do item is inserted and its partition's summary
counter bumped inside session.with_transaction(), so both writes commit or
neither does. Transactions need a replica set (Atlas, Cosmos DB for MongoDB
4.0+); a standalone server rejects them.
"""

import uuid
from typing import Any, Dict, Optional

from pymongo.client_session import ClientSession
from pymongo.collection import Collection

from .console import SampleConsole

COLLECTION_NAME = "sp-sample"
PARTITION_KEY = "Category"
SUMMARY_PREFIX = "summary-"

TODO_ITEM = {
    "Category": "Personal",
    "Name": "Groceries",
    "Description": "Pick up strawberries",
    "IsComplete": False,
}


def summary_key(partition_key: str) -> Dict[str, str]:
    return {"_id": f"{SUMMARY_PREFIX}{partition_key}", PARTITION_KEY: partition_key}


def create_todo_item(
    collection: Collection,
    item: Dict[str, Any],
    partition_key: str,
    session: Optional[ClientSession] = None,
) -> str:
    """
    Insert one to-do item into partition_key and count it in the partition summary.

    Returns:
        Id of the new item

    Raises:
        ValueError: If the item belongs to another partition
    """
    if item.get(PARTITION_KEY) != partition_key:
        raise ValueError(
            f"Item {PARTITION_KEY} {item.get(PARTITION_KEY)!r} does not match "
            f"partition {partition_key!r}"
        )

    document = dict(item, _id=str(uuid.uuid4()))
    collection.insert_one(document, session=session)
    collection.update_one(
        summary_key(partition_key),
        {"$inc": {"ItemCount": 1}},
        upsert=True,
        session=session,
    )
    return document["_id"]


def run(console: SampleConsole) -> Dict[str, Any]:
    collection = console.fresh_collection(COLLECTION_NAME)
    partition_key = TODO_ITEM[PARTITION_KEY]

    console.narrate(f"Creating a to-do item in partition {partition_key!r} inside a transaction")
    with console.database.client.start_session() as session:
        item_id = session.with_transaction(
            lambda s: create_todo_item(collection, TODO_ITEM, partition_key, s)
        )
    console.log_and_wait("Transaction committed, request charge: ")

    created = collection.find_one({"_id": item_id, PARTITION_KEY: partition_key})
    console.show(created)

    summary = collection.find_one(summary_key(partition_key))
    console.narrate(f"Partition summary: {summary}")
    console.wait()

    return {"id": item_id, "item": created, "summary": summary}

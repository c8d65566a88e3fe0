"""
Time-to-live sample.

A TTL index on expireAt removes documents once that moment has passed.
One person is stored without expiry and one expiring after a few seconds;
the sample polls until only the first one remains. The server's TTL
monitor runs periodically, so removal can lag the expiry time.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from pymongo.collection import Collection

from .console import SampleConsole

COLLECTION_NAME = "ttl-sample"
EXPIRE_FIELD = "expireAt"


def person(name: str, expire_at: Optional[datetime] = None) -> Dict:
    doc = {"Name": name, "Address": {"City": "Miami", "State": "Florida"}}
    if expire_at is not None:
        doc[EXPIRE_FIELD] = expire_at
    return doc


def create_documents(console: SampleConsole, collection: Collection, ttl_seconds: int) -> None:
    collection.insert_one(person("John Doe"))
    console.log_and_wait("Insert without TTL: ")

    expire_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
    collection.insert_one(person("John Doe (TTL)", expire_at))
    console.log_and_wait(f"Insert with {ttl_seconds} seconds TTL: ")


def retrieve_documents(console: SampleConsole, collection: Collection) -> int:
    items = list(collection.find({"Address.State": "Florida"}))
    for item in items:
        console.narrate(item["Name"])
    console.narrate(
        f"RetrieveDocuments >> Item Count: {len(items)} - Request Charge: {console.request_charge()}"
    )
    return len(items)


def run(
    console: SampleConsole,
    ttl_seconds: int = 10,
    poll_interval: float = 1.0,
    max_polls: int = 180,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Returns the number of documents left when polling stopped.

    Polling stops once a single document remains or after max_polls.
    """
    collection = console.fresh_collection(COLLECTION_NAME)
    collection.create_index(EXPIRE_FIELD, name="expire_at_ttl", expireAfterSeconds=0)

    create_documents(console, collection, ttl_seconds)

    remaining = retrieve_documents(console, collection)
    polls = 1
    while remaining > 1 and polls < max_polls:
        sleep(poll_interval)
        remaining = retrieve_documents(console, collection)
        polls += 1

    if remaining > 1:
        console.narrate(f"Document still present after {polls} polls")

    console.database.drop_collection(COLLECTION_NAME)
    return remaining

"""
Query sample over the family data set.

Shows an equality filter, an OR over two filters, a date range and
array "joins" expressed with $unwind, printing each result set with the
request charge it cost.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from pymongo.collection import Collection

from .console import SampleConsole

COLLECTION_NAME = "query-samples"


def families(now: datetime) -> List[Dict[str, Any]]:
    """The two sample families, registered 1 and 30 days before now."""
    return [
        {
            "_id": "AndersenFamily",
            "LastName": "Andersen",
            "Parents": [{"FirstName": "Thomas"}, {"FirstName": "Mary Kay"}],
            "Children": [
                {
                    "FirstName": "Henriette Thaulow",
                    "Gender": "female",
                    "Grade": 5,
                    "Pets": [{"GivenName": "Fluffy"}],
                },
            ],
            "Address": {"State": "WA", "County": "King", "City": "Seattle"},
            "IsRegistered": True,
            "RegistrationDate": now - timedelta(days=1),
        },
        {
            "_id": "WakefieldFamily",
            "LastName": "Wakefield",
            "Parents": [
                {"FamilyName": "Wakefield", "FirstName": "Robin"},
                {"FamilyName": "Miller", "FirstName": "Ben"},
            ],
            "Children": [
                {
                    "FamilyName": "Merriam",
                    "FirstName": "Jesse",
                    "Gender": "female",
                    "Grade": 8,
                    "Pets": [{"GivenName": "Goofy"}, {"GivenName": "Shadow"}],
                },
                {"FirstName": "Lisa", "Gender": "female", "Grade": 1},
            ],
            "Address": {"State": "NY", "County": "Manhattan", "City": "NY"},
            "IsRegistered": False,
            "RegistrationDate": now - timedelta(days=30),
        },
    ]


def create_documents(collection: Collection, now: datetime) -> None:
    for family in families(now):
        collection.replace_one({"_id": family["_id"]}, family, upsert=True)


def _report(console: SampleConsole, items: List[Dict[str, Any]]) -> None:
    for item in items:
        console.show(item)
    console.log_and_wait("Request Charge: ")


def query_with_one_filter(console: SampleConsole, collection: Collection) -> List[Dict[str, Any]]:
    console.narrate("Simple query equality. Find family where id = 'AndersenFamily'")
    items = list(collection.find({"_id": "AndersenFamily"}))
    _report(console, items)
    return items


def query_with_two_filters(console: SampleConsole, collection: Collection) -> List[Dict[str, Any]]:
    console.narrate("Filter on two properties. Find families where id is 'AndersenFamily' OR city is 'NY'")
    items = list(collection.find(
        {"$or": [{"_id": "AndersenFamily"}, {"Address.City": "NY"}]},
        {"_id": 0, "LastName": 1, "Address.City": 1},
    ))
    _report(console, items)
    return items


def query_with_range_operators(
    console: SampleConsole, collection: Collection, now: datetime
) -> List[Dict[str, Any]]:
    console.narrate("Query using a range operator on a date time")
    since = now - timedelta(days=3)
    items = list(collection.find({"RegistrationDate": {"$gte": since}}))
    for item in items:
        console.narrate(f"The {item['LastName']} family registered within the last 3 days")
    console.log_and_wait("Request Charge: ")
    return items


def query_with_single_join(console: SampleConsole, collection: Collection) -> List[Dict[str, Any]]:
    console.narrate("Query using a single join on Families and Children")
    items = list(collection.aggregate([
        {"$unwind": "$Children"},
        {"$project": {"_id": 1, "child": "$Children.FirstName"}},
    ]))
    _report(console, items)
    return items


def query_with_double_join(console: SampleConsole, collection: Collection) -> List[Dict[str, Any]]:
    console.narrate("Query using a double join on Families, Children, and Pets")
    items = list(collection.aggregate([
        {"$unwind": "$Children"},
        {"$unwind": "$Children.Pets"},
        {"$project": {
            "_id": 0,
            "family": "$_id",
            "child": "$Children.FirstName",
            "pet": "$Children.Pets.GivenName",
        }},
    ]))
    _report(console, items)
    return items


def run(console: SampleConsole) -> Dict[str, List[Dict[str, Any]]]:
    collection = console.database[COLLECTION_NAME]
    now = datetime.now(timezone.utc)
    create_documents(collection, now)

    return {
        "one_filter": query_with_one_filter(console, collection),
        "two_filters": query_with_two_filters(console, collection),
        "range": query_with_range_operators(console, collection, now),
        "single_join": query_with_single_join(console, collection),
        "double_join": query_with_double_join(console, collection),
    }

"""
Index management sample.

1. Keep a document out of an index with a partial index
2. Exclude paths from indexing with a wildcard index projection
3. Force a collection scan on an indexed path
4. Transform the index set (drop and recreate)

Every query prints the winning plan so the effect of each index is visible.
"""

from typing import Any, Dict, List, Optional

from pymongo.collection import Collection

from .console import SEPARATOR, SampleConsole

COLLECTION_NAME = "index-samples"

NESTED_DOCUMENT = {
    "_id": "doc1",
    "foo": "bar",
    "metaData": "meta",
    "subDoc": {"searchable": "searchable", "nonSearchable": "value"},
    "excludedNode": {"subExcluded": "something", "subExcludedNode": {"someProperty": "value"}},
}

# Everything but metaData, subDoc.nonSearchable and excludedNode is indexed
WILDCARD_PROJECTION = {
    "metaData": 0,
    "subDoc.nonSearchable": 0,
    "excludedNode": 0,
}


def plan_stages(explain: Dict[str, Any]) -> List[str]:
    """
    Stage names of the winning plan, outermost first.

    Returns an empty list when the server does not report a query planner.
    """
    planner = explain.get("queryPlanner") or {}
    plan: Optional[Dict[str, Any]] = planner.get("winningPlan")
    # Newer servers nest the classic plan under queryPlan
    if plan and "queryPlan" in plan:
        plan = plan["queryPlan"]

    stages = []
    while plan:
        stage = plan.get("stage")
        if stage:
            stages.append(stage)
        plan = plan.get("inputStage")
    return stages


def describe_plan(explain: Dict[str, Any]) -> str:
    stages = plan_stages(explain)
    return " > ".join(stages) if stages else "unknown"


def _query(console: SampleConsole, collection: Collection, query: Dict[str, Any], hint=None) -> bool:
    """Run query, print whether it found anything and which plan served it."""
    cursor = collection.find(query)
    if hint is not None:
        cursor = cursor.hint(hint)
    found = next(iter(cursor), None) is not None

    explain_cursor = collection.find(query)
    if hint is not None:
        explain_cursor = explain_cursor.hint(hint)
    plan = describe_plan(explain_cursor.explain())

    console.narrate(f"Query {query} found a document: {found} (plan: {plan})")
    return found


def exclude_document_from_index(console: SampleConsole) -> Dict[str, bool]:
    console.narrate("\n1. Exclude a document from the index")
    collection = console.fresh_collection(COLLECTION_NAME)

    collection.create_index(
        "orderId",
        name="orderId_indexed_only",
        partialFilterExpression={"indexed": {"$eq": True}},
    )
    console.narrate(f"Collection {COLLECTION_NAME} created with indexes:")
    console.show(collection.index_information())

    collection.insert_one({"_id": "doc1", "orderId": "order1", "indexed": True})
    console.log_and_wait("Document doc1 created (indexed). Request charge: ")

    results = {"doc1_by_index": _query(console, collection, {"orderId": "order1", "indexed": True})}
    console.wait()

    collection.insert_one({"_id": "doc2", "orderId": "order2", "indexed": False})
    console.log_and_wait("Document doc2 created outside the partial index. Request charge: ")

    results["doc2_by_query"] = _query(console, collection, {"orderId": "order2"})
    console.narrate("The query above could not use the index, but the document is there.")

    results["doc2_by_id"] = collection.find_one({"_id": "doc2"}) is not None
    console.narrate(f"Document read by id: {results['doc2_by_id']}")

    console.database.drop_collection(COLLECTION_NAME)
    console.wait()
    return results


def exclude_paths_from_index(console: SampleConsole) -> Dict[str, bool]:
    console.narrate("\n2. Exclude specified paths from the document index")
    collection = console.fresh_collection(COLLECTION_NAME)

    collection.create_index(
        [("$**", 1)],
        name="wildcard_with_exclusions",
        wildcardProjection=WILDCARD_PROJECTION,
    )
    console.narrate(f"Collection {COLLECTION_NAME} created with indexes:")
    console.show(collection.index_information())

    collection.insert_one(dict(NESTED_DOCUMENT))
    console.narrate("Document created:")
    console.show(NESTED_DOCUMENT)
    console.log_and_wait("Request charge: ")

    results = {}
    # Excluded paths are still queryable, only through a collection scan
    results["metaData"] = _query(console, collection, {"metaData": "meta"})
    results["subDoc.nonSearchable"] = _query(console, collection, {"subDoc.nonSearchable": "value"})
    results["excludedNode.subExcludedNode.someProperty"] = _query(
        console, collection, {"excludedNode.subExcludedNode.someProperty": "value"}
    )
    results["foo"] = _query(console, collection, {"foo": "bar"})
    results["subDoc.searchable"] = _query(console, collection, {"subDoc.searchable": "searchable"})
    console.wait()
    return results


def force_collection_scan(console: SampleConsole) -> bool:
    console.narrate("\n3. Force a collection scan on an indexed path")
    collection = console.database[COLLECTION_NAME]

    found = _query(console, collection, {"foo": "bar"}, hint=[("$natural", 1)])
    console.log_and_wait("Request charge of the forced scan: ")
    return found


def transform_index(console: SampleConsole) -> List[str]:
    console.narrate("\n4. Perform an index transform")
    collection = console.database[COLLECTION_NAME]

    collection.drop_index("wildcard_with_exclusions")
    collection.create_index([("foo", 1), ("subDoc.searchable", 1)], name="foo_searchable")
    console.narrate("Wildcard index replaced by a compound index:")
    indexes = collection.index_information()
    console.show(indexes)

    _query(console, collection, {"foo": "bar", "subDoc.searchable": "searchable"})
    console.log_and_wait("Request charge: ")
    return sorted(indexes)


def run(console: SampleConsole) -> Dict[str, Any]:
    """Run every step, dropping the sample collection at the end."""
    results: Dict[str, Any] = {
        "exclude_document": exclude_document_from_index(console),
        "exclude_paths": exclude_paths_from_index(console),
        "forced_scan": force_collection_scan(console),
        "indexes": transform_index(console),
    }
    console.database.drop_collection(COLLECTION_NAME)
    console.narrate(SEPARATOR)
    return results

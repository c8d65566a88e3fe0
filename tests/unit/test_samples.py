"""
Tests for the console samples.

Samples run against an in-memory MongoDB where its query support allows
(queries, partitioning, ttl, the stored procedure and trigger helpers);
explain(), sessions and collection validators are checked against a
MagicMock database.
"""

import random
from datetime import datetime, timezone
from unittest.mock import MagicMock, call, patch

import mongomock
import pytest
from pymongo.errors import OperationFailure, WriteError

from docdb.common.errors import ServiceError
from docdb.samples import SAMPLES, indexing, partitioning, queries, stored_procedure, triggers, ttl
from docdb.samples.cli import main
from docdb.samples.console import SampleConsole, log_exception


@pytest.fixture(autouse=True)
def no_request_charge():
    """The in-memory server has no request statistics command."""
    with patch("docdb.samples.console.last_request_charge", return_value=None) as mock_charge:
        yield mock_charge


@pytest.fixture
def output():
    return []


@pytest.fixture
def console(output):
    database = mongomock.MongoClient()["samples"]
    return SampleConsole(database, pause=False, output=output.append)


class TestSampleConsole:
    """Tests for SampleConsole."""

    def test_log_and_wait_prints_charge(self, output, no_request_charge):
        """Should print the message followed by the request charge."""
        no_request_charge.return_value = 3.5
        keys = []
        console = SampleConsole(MagicMock(), pause=True, output=output.append, wait_for_key=keys.append)

        assert console.log_and_wait("Request charge: ") == 3.5

        assert output[0] == "Request charge: 3.5"
        assert len(keys) == 1

    def test_unknown_charge(self, console, output):
        """Should print n/a when the server reports no charge."""
        console.log_and_wait("Charge: ")

        assert output[0] == "Charge: n/a"

    def test_no_pause(self, output):
        """Should not wait for a key when pause is off."""
        wait = MagicMock()
        console = SampleConsole(MagicMock(), pause=False, output=output.append, wait_for_key=wait)

        console.wait()

        wait.assert_not_called()

    def test_fresh_collection_is_empty(self, console):
        """Should drop leftovers from earlier runs."""
        console.database["leftover"].insert_one({"_id": 1})

        assert console.fresh_collection("leftover").count_documents({}) == 0


class TestLogException:
    """Tests for log_exception()."""

    def test_driver_error_shows_code(self):
        """Should print the server code for driver errors."""
        lines = []
        log_exception(OperationFailure("not allowed", code=13), output=lines.append)

        assert lines[0].startswith("13 error occurred: not allowed")

    def test_service_error_shows_root_cause(self):
        """Should print the code and the chained cause."""
        lines = []
        try:
            try:
                raise OperationFailure("throttled", code=16500)
            except OperationFailure as e:
                raise ServiceError("add", str(e), code=16500) from e
        except ServiceError as e:
            log_exception(e, output=lines.append)

        assert lines[0].startswith("16500 error occurred: add failed")
        assert lines[0].endswith("Message: throttled")

    def test_other_error(self):
        """Should print a generic line for other exceptions."""
        lines = []
        log_exception(RuntimeError("boom"), output=lines.append)

        assert lines == ["Error: boom, Message: boom"]


class TestQueriesSample:
    """Tests for the queries sample."""

    def test_results(self, console):
        """Should answer each query over the family data set."""
        results = queries.run(console)

        assert [f["_id"] for f in results["one_filter"]] == ["AndersenFamily"]
        assert sorted(f["LastName"] for f in results["two_filters"]) == ["Andersen", "Wakefield"]
        assert [f["LastName"] for f in results["range"]] == ["Andersen"]
        assert sorted(r["child"] for r in results["single_join"]) == ["Henriette Thaulow", "Jesse", "Lisa"]
        assert sorted((r["family"], r["child"], r["pet"]) for r in results["double_join"]) == [
            ("AndersenFamily", "Henriette Thaulow", "Fluffy"),
            ("WakefieldFamily", "Jesse", "Goofy"),
            ("WakefieldFamily", "Jesse", "Shadow"),
        ]

    def test_rerun_is_idempotent(self, console):
        """Should upsert the families rather than duplicate them."""
        queries.run(console)
        queries.run(console)

        assert console.database[queries.COLLECTION_NAME].count_documents({}) == 2


class TestPartitioningSample:
    """Tests for the partitioning sample."""

    def test_make_people_suffix(self):
        """Should append a numeric suffix to every state when asked."""
        people = partitioning.make_people(20, add_suffix=True, rng=random.Random(1))

        assert len(people) == 20
        assert all(p["Address"]["State"].rsplit("-", 1)[1].isdigit() for p in people)

    def test_counts(self, console):
        """Should count exact matches and prefix matches for the target state."""
        rng = random.Random(7)
        exact = partitioning.make_people(50, add_suffix=False, rng=rng)
        suffixed = partitioning.make_people(50, add_suffix=True, rng=rng)
        target = partitioning.TARGET_STATE

        results = partitioning.run(console, people=50, seed_value=7)

        assert results["with_partition_key"] == sum(
            1 for p in exact if p["Address"]["State"] == target
        )
        assert results["without_partition_key"] == sum(
            1 for p in suffixed if p["Address"]["State"].startswith(target)
        )
        assert console.database[partitioning.COLLECTION_NAME].count_documents({}) == 50


class TestTTLSample:
    """Tests for the ttl sample."""

    def test_expired_document_disappears(self, console):
        """Should stop polling once only the non-expiring document is left."""
        remaining = ttl.run(console, ttl_seconds=0, sleep=lambda _: None)

        assert remaining == 1

    def test_gives_up_after_max_polls(self, console, output):
        """Should stop after max_polls when nothing expires."""
        sleep = MagicMock()

        remaining = ttl.run(console, ttl_seconds=3600, max_polls=3, sleep=sleep)

        assert remaining == 2
        assert sleep.call_count == 2
        assert "Document still present after 3 polls" in output


class TestIndexingSample:
    """Tests for the indexing sample."""

    @pytest.fixture
    def mock_database(self):
        database = MagicMock()
        collection = MagicMock()
        database.__getitem__.return_value = collection

        cursor = MagicMock()
        cursor.hint.return_value = cursor
        cursor.__iter__ = lambda self: iter([{"_id": "doc1"}])
        cursor.explain.return_value = {
            "queryPlanner": {"winningPlan": {"stage": "FETCH", "inputStage": {"stage": "IXSCAN"}}}
        }
        collection.find.return_value = cursor
        collection.index_information.return_value = {"_id_": {"key": [("_id", 1)]}}
        return database

    @pytest.mark.parametrize("explain,expected", [
        ({"queryPlanner": {"winningPlan": {"stage": "COLLSCAN"}}}, ["COLLSCAN"]),
        (
            {"queryPlanner": {"winningPlan": {"queryPlan": {"stage": "FETCH", "inputStage": {"stage": "IXSCAN"}}}}},
            ["FETCH", "IXSCAN"],
        ),
        ({}, []),
    ])
    def test_plan_stages(self, explain, expected):
        """Should walk the winning plan from the outermost stage."""
        assert indexing.plan_stages(explain) == expected

    def test_describe_unknown_plan(self):
        """Should say unknown when the server reports no plan."""
        assert indexing.describe_plan({}) == "unknown"

    def test_run(self, mock_database, output):
        """Should create, query, hint and transform the indexes."""
        console = SampleConsole(mock_database, pause=False, output=output.append)
        collection = mock_database["index-samples"]

        results = indexing.run(console)

        collection.create_index.assert_any_call(
            "orderId",
            name="orderId_indexed_only",
            partialFilterExpression={"indexed": {"$eq": True}},
        )
        collection.create_index.assert_any_call(
            [("$**", 1)],
            name="wildcard_with_exclusions",
            wildcardProjection=indexing.WILDCARD_PROJECTION,
        )
        collection.drop_index.assert_called_once_with("wildcard_with_exclusions")
        assert call([("$natural", 1)]) in collection.find.return_value.hint.call_args_list
        assert results["forced_scan"] is True
        assert results["exclude_document"]["doc2_by_id"] is True
        assert any("plan: FETCH > IXSCAN" in line for line in output)


class TestStoredProcedureSample:
    """Tests for the stored procedure sample."""

    @pytest.fixture
    def collection(self):
        return mongomock.MongoClient()["samples"][stored_procedure.COLLECTION_NAME]

    def test_creates_item_and_counts_it(self, collection):
        """Should insert the item and bump the partition summary."""
        first = stored_procedure.create_todo_item(collection, stored_procedure.TODO_ITEM, "Personal")
        stored_procedure.create_todo_item(collection, stored_procedure.TODO_ITEM, "Personal")

        stored = collection.find_one({"_id": first})
        assert stored["Name"] == "Groceries"
        assert stored["Category"] == "Personal"
        summary = collection.find_one(stored_procedure.summary_key("Personal"))
        assert summary["ItemCount"] == 2

    def test_rejects_other_partition(self, collection):
        """Should refuse items that do not belong to the partition."""
        with pytest.raises(ValueError, match="does not match"):
            stored_procedure.create_todo_item(collection, stored_procedure.TODO_ITEM, "Work")

        assert collection.count_documents({}) == 0

    def test_run_uses_transaction(self, output):
        """Should run both writes through one session transaction."""
        database = MagicMock()
        collection = database.__getitem__.return_value
        session = database.client.start_session.return_value.__enter__.return_value
        session.with_transaction.side_effect = lambda callback, **kwargs: callback(session)
        collection.find_one.side_effect = [{"_id": "x", "Name": "Groceries"}, {"ItemCount": 1}]
        console = SampleConsole(database, pause=False, output=output.append)

        results = stored_procedure.run(console)

        session.with_transaction.assert_called_once()
        inserted = collection.insert_one.call_args
        assert inserted.kwargs["session"] is session
        assert inserted.args[0]["Category"] == "Personal"
        assert collection.update_one.call_args.kwargs == {"upsert": True, "session": session}
        assert results["id"] == inserted.args[0]["_id"]
        assert results["summary"] == {"ItemCount": 1}

    def test_transaction_failure_propagates(self, output):
        """Should surface server errors such as transactions on a standalone server."""
        database = MagicMock()
        session = database.client.start_session.return_value.__enter__.return_value
        session.with_transaction.side_effect = OperationFailure(
            "Transaction numbers are only allowed on a replica set member", code=20
        )
        console = SampleConsole(database, pause=False, output=output.append)

        with pytest.raises(OperationFailure):
            stored_procedure.run(console)


class TestTriggersSample:
    """Tests for the triggers sample."""

    def test_pre_trigger_adds_missing_timestamp(self):
        """Should stamp the item only when it has no timestamp."""
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)

        stamped = triggers.pre_validate_timestamp({"Name": "a"}, now=now)
        kept = triggers.pre_validate_timestamp({"Name": "a", "timestamp": "earlier"}, now=now)

        assert stamped["timestamp"] == now
        assert kept["timestamp"] == "earlier"

    def test_pre_trigger_leaves_input_alone(self):
        """Should return a copy instead of changing the caller's item."""
        item = dict(triggers.TODO_ITEM)

        triggers.pre_validate_timestamp(item)

        assert "timestamp" not in item

    def test_create_item_updates_metadata(self):
        """Should keep a per-partition count and name list."""
        collection = mongomock.MongoClient()["samples"][triggers.COLLECTION_NAME]

        triggers.create_item(collection, triggers.TODO_ITEM)
        created = triggers.create_item(collection, dict(triggers.TODO_ITEM, Name="Laundry"))

        assert created["timestamp"] is not None
        metadata = collection.find_one({"_id": triggers.METADATA_ID})
        assert metadata["Category"] == "Personal"
        assert metadata["CreatedItems"] == 2
        assert metadata["CreatedNames"] == ["Groceries", "Laundry"]

    def test_run_creates_validated_collection(self, output):
        """Should create the validator, see the raw item rejected and store the stamped one."""
        database = MagicMock()
        collection = database.create_collection.return_value
        collection.insert_one.side_effect = [
            WriteError("Document failed validation", code=121),
            MagicMock(inserted_id="item-1"),
        ]
        collection.find_one.return_value = {"_id": "_metadata", "CreatedItems": 1}
        console = SampleConsole(database, pause=False, output=output.append)

        results = triggers.run(console)

        database.create_collection.assert_called_once_with(
            "trigger-sample", validator=triggers.TIMESTAMP_VALIDATOR
        )
        assert results["rejected"] is True
        assert results["item"]["_id"] == "item-1"
        assert "timestamp" in results["item"]
        assert results["metadata"]["CreatedItems"] == 1
        database.drop_collection.assert_called_with("trigger-sample")

    def test_validation_not_enforced(self, output):
        """Should report and remove the raw item when the server accepts it."""
        database = MagicMock()
        collection = database.create_collection.return_value
        collection.insert_one.return_value = MagicMock(inserted_id="raw")
        console = SampleConsole(database, pause=False, output=output.append)

        assert triggers.insert_without_timestamp(console, collection) is False
        collection.delete_one.assert_called_once_with({"_id": "raw"})

    def test_other_write_errors_propagate(self, output):
        """Should not mistake other write errors for a validation failure."""
        collection = MagicMock()
        collection.insert_one.side_effect = WriteError("duplicate key", code=11000)
        console = SampleConsole(MagicMock(), pause=False, output=output.append)

        with pytest.raises(WriteError):
            triggers.insert_without_timestamp(console, collection)


class TestCli:
    """Tests for the run_sample entry point."""

    @pytest.fixture(autouse=True)
    def quiet_logging(self):
        with patch("docdb.samples.cli.setup_logging"), patch("docdb.samples.cli.load_dotenv"):
            yield

    def test_runs_sample_without_pause(self):
        """Should run the chosen sample with pausing disabled."""
        sample = MagicMock()
        with patch.dict("docdb.samples.cli.SAMPLES", {"queries": sample}), \
                patch("docdb.samples.cli.DocumentClient") as mock_client:
            code = main(["queries", "--no-pause", "--uri", "mongodb://example:27017"])

        assert code == 0
        console = sample.call_args[0][0]
        assert console.pause is False
        settings = mock_client.call_args[0][0]
        assert settings.mongodb_uri == "mongodb://example:27017"
        mock_client.return_value.__enter__.return_value.database.assert_called_once_with("samples")

    def test_failure_exits_non_zero(self, capsys):
        """Should report the error and return 1."""
        sample = MagicMock(side_effect=RuntimeError("boom"))
        with patch.dict("docdb.samples.cli.SAMPLES", {"ttl": sample}), \
                patch("docdb.samples.cli.DocumentClient"):
            code = main(["ttl", "--no-pause"])

        assert code == 1
        assert "Error: boom" in capsys.readouterr().out

    def test_debug_flag_enables_debug_mode(self):
        """Should switch on global debug mode before configuring logging."""
        with patch.dict("docdb.samples.cli.SAMPLES", {"queries": MagicMock()}), \
                patch("docdb.samples.cli.DocumentClient"), \
                patch("docdb.samples.cli.set_global_debug_mode") as mock_debug:
            assert main(["queries", "--no-pause", "--debug"]) == 0

        mock_debug.assert_called_once_with(True)

    def test_debug_mode_off_by_default(self):
        """Should leave debug mode alone without --debug."""
        with patch.dict("docdb.samples.cli.SAMPLES", {"queries": MagicMock()}), \
                patch("docdb.samples.cli.DocumentClient"), \
                patch("docdb.samples.cli.set_global_debug_mode") as mock_debug:
            main(["queries", "--no-pause"])

        mock_debug.assert_not_called()

    def test_invalid_configuration(self):
        """Should return 2 for an unusable connection string."""
        assert main(["queries", "--uri", "http://nowhere"]) == 2

    def test_registered_samples(self):
        """Should expose every sample."""
        assert sorted(SAMPLES) == [
            "indexing", "partitioning", "queries", "stored_procedure", "triggers", "ttl",
        ]

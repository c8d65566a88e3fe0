"""
Console samples for the document database.

Each module exposes run(console) and is wired to scripts/run_sample.py:
- indexing: partial and wildcard indexes, forced scans, index transforms
- partitioning: single-partition vs. fan-out queries
- queries: equality, OR, date range and $unwind joins
- stored_procedure: partition-scoped multi-statement transaction
- triggers: validator as pre-create check, metadata follow-up as post-create
- ttl: documents expiring through a TTL index
"""

from . import indexing, partitioning, queries, stored_procedure, triggers, ttl
from .console import SAMPLES_DATABASE, SampleConsole, log_exception

SAMPLES = {
    "indexing": indexing.run,
    "partitioning": partitioning.run,
    "queries": queries.run,
    "stored_procedure": stored_procedure.run,
    "triggers": triggers.run,
    "ttl": ttl.run,
}

__all__ = [
    "SAMPLES",
    "SAMPLES_DATABASE",
    "SampleConsole",
    "log_exception",
]

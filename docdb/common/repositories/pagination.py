"""
Continuation tokens for keyset pagination.

A token records where the previous page stopped: the last document's sort
value and id, plus the query it belongs to (kind, sort field, order). The
next page resumes strictly after that (value, id) pair, with ties on the
sort value broken by id, so pages never overlap or skip documents even
when the sort field has duplicates.

Tokens are URL-safe base64 of Extended JSON (bson.json_util), which keeps
datetimes and other BSON types intact across the round trip.
"""

import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from bson import json_util
from bson.json_util import JSONOptions, JSONMode

from docdb.common.errors import InvalidContinuationTokenError
from docdb.domain.documents import ETAG_FIELD, ID_FIELD

from .base import SortOrder

# Naive UTC datetimes compare cleanly with whatever the server hands back
_TOKEN_JSON_OPTIONS = JSONOptions(json_mode=JSONMode.CANONICAL, tz_aware=False)

_FIELD_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")

# Public names that map to stored names
_FIELD_ALIASES = {"id": ID_FIELD, "etag": ETAG_FIELD}


def resolve_sort_field(
    sort_field: str,
    payload_aliases: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Map a caller-supplied sort field to its stored name.

    Args:
        sort_field: Stored name, envelope alias ("id", "etag") or payload
            attribute name; dotted paths are allowed
        payload_aliases: Payload attribute name -> stored name; the first
            path segment is translated through it

    Raises:
        ValueError: If the name is empty or not a plain (dotted) field path
    """
    name = (sort_field or "").strip()
    if name in _FIELD_ALIASES:
        return _FIELD_ALIASES[name]
    if name == ID_FIELD:
        return name
    if not _FIELD_PATTERN.match(name):
        raise ValueError(f"Invalid sort field: {sort_field!r}")
    if payload_aliases:
        head, dot, rest = name.partition(".")
        if head in payload_aliases:
            name = payload_aliases[head] + dot + rest
    return name


@dataclass(frozen=True)
class ContinuationToken:
    """Decoded continuation state."""
    kind: str
    sort_field: str
    order: SortOrder
    last_value: Any
    last_id: str

    def encode(self) -> str:
        payload = {
            "k": self.kind,
            "f": self.sort_field,
            "o": self.order.value,
            "v": self.last_value,
            "id": self.last_id,
        }
        raw = json_util.dumps(payload, json_options=_TOKEN_JSON_OPTIONS)
        return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")

    @classmethod
    def decode(cls, token: str) -> "ContinuationToken":
        padded = token + "=" * (-len(token) % 4)
        try:
            raw = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
            payload = json_util.loads(raw, json_options=_TOKEN_JSON_OPTIONS)
            return cls(
                kind=payload["k"],
                sort_field=payload["f"],
                order=SortOrder(payload["o"]),
                last_value=payload.get("v"),
                last_id=payload["id"],
            )
        except (binascii.Error, UnicodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise InvalidContinuationTokenError(f"Malformed continuation token: {e}") from e

    def check_matches(self, kind: str, sort_field: str, order: SortOrder) -> None:
        """Reject tokens minted for another kind or ordering."""
        if (self.kind, self.sort_field, self.order) != (kind, sort_field, order):
            raise InvalidContinuationTokenError(
                "Continuation token belongs to a different query "
                f"({self.kind}/{self.sort_field}/{self.order.value})"
            )


def lookup_value(record: Dict[str, Any], field_path: str) -> Any:
    """Read a (dotted) field from a stored record; None when absent."""
    value: Any = record
    for part in field_path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def sort_spec(sort_field: str, order: SortOrder) -> list:
    """pymongo sort specification, ties broken by id."""
    if sort_field == ID_FIELD:
        return [(ID_FIELD, order.direction)]
    return [(sort_field, order.direction), (ID_FIELD, order.direction)]


def _compare_after(field_name: str, operator: str, value: Any) -> Dict[str, Any]:
    """
    Aggregation comparison of a field against a literal.

    Unlike query operators, aggregation comparisons follow the BSON order
    across types (null < numbers < strings < objects < ... < dates), which
    is the order the sort itself uses. Missing fields compare as null.
    """
    return {
        "$expr": {
            operator: [
                {"$ifNull": [f"${field_name}", None]},
                {"$literal": value},
            ]
        }
    }


def resume_filter(token: ContinuationToken) -> Dict[str, Any]:
    """
    Filter selecting documents strictly after the token's position.

    Missing and null sort values sort before everything else ascending and
    after everything descending; both directions account for that. Values
    of a different type than the last one are placed by BSON type order.
    """
    field_name = token.sort_field
    value = token.last_value
    last_id = token.last_id
    after = "$gt" if token.order is SortOrder.ASC else "$lt"

    if field_name == ID_FIELD:
        return {ID_FIELD: {after: last_id}}

    same_value_later_id = {field_name: value, ID_FIELD: {after: last_id}}

    if value is None:
        if token.order is SortOrder.ASC:
            return {"$or": [{field_name: {"$ne": None}}, same_value_later_id]}
        return same_value_later_id

    return {"$or": [_compare_after(field_name, after, value), same_value_later_id]}

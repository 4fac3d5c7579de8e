"""
Decoding of the list/read query parameters.

``where``, ``sort`` and ``select`` arrive as JSON-encoded objects, ``skip`` and
``limit`` as integers and ``count`` as the literal string ``"true"``. This
module only parses and checks the shape of those values; translating a
``where``/``sort`` object into SQL happens in ``taskboard.db.store`` against
the field whitelist of each collection.
"""
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .errors import BadRequest

LIST_JSON_ERROR = "Bad Request: Invalid JSON in 'where', 'sort', or 'select' query parameter."
SELECT_JSON_ERROR = "Bad Request: Invalid JSON in 'select' query parameter."

ID_FIELD = "_id"
ID_ALIASES = ("id",)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# Largest value a 64-bit database integer can bind
MAX_INT = 2**63 - 1


@dataclass
class ListQuery:
    where: Dict[str, Any] = field(default_factory=dict)
    sort: Dict[str, Any] = field(default_factory=dict)
    select: Dict[str, Any] = field(default_factory=dict)
    skip: int = 0
    limit: int = 0
    count: bool = False


def canonical_field(name: str) -> str:
    return ID_FIELD if name in ID_ALIASES else name


def parse_json_object(raw: Optional[str], message: str) -> Dict[str, Any]:
    """Decode an optional JSON object parameter; absent or empty means ``{}``."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        raise BadRequest(message)
    if not isinstance(value, dict):
        raise BadRequest(message)
    return value


def parse_int(raw: Optional[str], default: int) -> int:
    # Leading integer prefix wins ("10abc" -> 10); anything else keeps the default.
    # Out-of-range values are clamped to what the database can bind.
    if not raw:
        return default
    match = _LEADING_INT.match(raw)
    if not match:
        return default
    return max(-MAX_INT, min(int(match.group(1)), MAX_INT))


def parse_list_query(
    where: Optional[str] = None,
    sort: Optional[str] = None,
    select: Optional[str] = None,
    skip: Optional[str] = None,
    limit: Optional[str] = None,
    count: Optional[str] = None,
    *,
    default_limit: int = 0,
) -> ListQuery:
    parsed_where = parse_json_object(where, LIST_JSON_ERROR)
    parsed_sort = parse_json_object(sort, LIST_JSON_ERROR)
    parsed_select = parse_json_object(select, LIST_JSON_ERROR)

    if count == "true":
        return ListQuery(where=parsed_where, count=True)

    parsed_skip = max(parse_int(skip, 0), 0)
    parsed_limit = abs(parse_int(limit, default_limit))

    return ListQuery(
        where=parsed_where,
        sort=parsed_sort,
        select=parsed_select,
        skip=parsed_skip,
        limit=parsed_limit,
    )


def parse_select(select: Optional[str]) -> Dict[str, Any]:
    return parse_json_object(select, SELECT_JSON_ERROR)


class Projection:
    """
    Field selection applied to serialized documents.

    Follows the document-store convention: a truthy value includes a field, a
    falsy one excludes it, the two modes cannot be mixed, and ``_id`` is kept
    unless excluded explicitly.
    """

    def __init__(self, selection: Mapping[str, Any], fields: Mapping[str, str]):
        self.include = set()
        self.exclude = set()
        id_flag = None

        for raw_name, flag in selection.items():
            name = canonical_field(raw_name)
            if name not in fields:
                raise BadRequest(f"Bad Request: Unknown field '{raw_name}' in 'select'.")
            if name == ID_FIELD:
                id_flag = bool(flag)
            elif flag:
                self.include.add(name)
            else:
                self.exclude.add(name)

        if self.include and self.exclude:
            raise BadRequest("Bad Request: 'select' cannot mix inclusion and exclusion.")

        self.keep_id = id_flag is not False
        # {"_id": 1} on its own is an inclusion projection of just the id
        self.id_only = id_flag is True and not self.include and not self.exclude

    @property
    def is_empty(self) -> bool:
        return not self.include and not self.exclude and self.keep_id and not self.id_only

    def apply(self, document: Dict[str, Any]) -> Dict[str, Any]:
        if self.is_empty:
            return document
        if self.include or self.id_only:
            names = set(self.include)
            if self.keep_id:
                names.add(ID_FIELD)
            return {key: value for key, value in document.items() if key in names}
        dropped = set(self.exclude)
        if not self.keep_id:
            dropped.add(ID_FIELD)
        return {key: value for key, value in document.items() if key not in dropped}

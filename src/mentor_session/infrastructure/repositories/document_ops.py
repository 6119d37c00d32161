"""Document manipulation shared by the document store implementations.

Handles ONLY pure dict operations: server timestamp resolution, dot-path
field updates, deep merge and filter matching. No I/O.
"""

import copy
import operator
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from ...core.protocols import SERVER_TIMESTAMP, DocumentSnapshot, FieldFilter

_MISSING = object()

_COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
}


def resolve_server_timestamps(data: Mapping[str, Any], now: datetime) -> Dict[str, Any]:
    """Deep-copy ``data`` replacing every ``SERVER_TIMESTAMP`` with ``now``."""
    resolved: Dict[str, Any] = {}
    for key, value in data.items():
        if value is SERVER_TIMESTAMP:
            resolved[key] = now
        elif isinstance(value, Mapping):
            resolved[key] = resolve_server_timestamps(value, now)
        else:
            resolved[key] = copy.deepcopy(value)
    return resolved


def deep_merge(target: Dict[str, Any], source: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``source`` into ``target`` in place; nested maps merge key by key."""
    for key, value in source.items():
        current = target.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            deep_merge(current, value)
        else:
            target[key] = copy.deepcopy(value)
    return target


def apply_field_updates(document: Dict[str, Any], fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Apply ``update`` semantics in place: each key is a dot-path, replaced wholesale."""
    for path, value in fields.items():
        parts = path.split(".")
        node = document
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = copy.deepcopy(value)
    return document


def get_field(document: Mapping[str, Any], path: str, default: Any = None) -> Any:
    node: Any = document
    for part in path.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return default
        node = node[part]
    return node


def matches(document: Mapping[str, Any], filters: Iterable[FieldFilter]) -> bool:
    """True if the document satisfies every filter; a missing field never matches."""
    for field_filter in filters:
        value = get_field(document, field_filter.field, _MISSING)
        if value is _MISSING:
            return False
        try:
            if not _COMPARATORS[field_filter.op](value, field_filter.value):
                return False
        except TypeError:
            return False
    return True


def run_query(
    documents: Mapping[str, Mapping[str, Any]],
    filters: Sequence[FieldFilter] = (),
    order_by: Optional[str] = None,
    descending: bool = False
) -> List[DocumentSnapshot]:
    """Filter and order an id -> document mapping.

    With ``order_by``, documents lacking that field are excluded.
    """
    hits = [
        (doc_id, data)
        for doc_id, data in documents.items()
        if matches(data, filters)
    ]

    if order_by:
        hits = [
            (doc_id, data) for doc_id, data in hits
            if get_field(data, order_by, _MISSING) is not _MISSING
        ]
        hits.sort(key=lambda item: get_field(item[1], order_by), reverse=descending)

    return [DocumentSnapshot(id=doc_id, data=copy.deepcopy(dict(data))) for doc_id, data in hits]

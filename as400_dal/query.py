"""
SQL construction for the AS400 data-access layer.

Every builder returns the SQL text together with a positional parameter list
whose order matches the `?` placeholders left to right. Criteria and order
specifications accept either a raw fragment or a structured form:

    build_where({"STATUS": "A", "IDS": [1, 2, 3], 0: "BALANCE > 0"})
    -> (" WHERE STATUS = ? AND IDS IN (?,?,?) AND BALANCE > 0", ["A", 1, 2, 3])

Raw fragments are inlined verbatim; callers are responsible for their safety.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from as400_dal.utils.logging import get_logger

log = get_logger(__name__)

Criteria = Union[str, Mapping[Union[str, int], Any], None]
OrderSpec = Union[str, Mapping[str, str], Sequence[Any], None]
Fields = Union[str, Sequence[str], None]
Query = Tuple[str, List[Any]]

_SUBQUERY_RE = re.compile(r"^\s*\(\s*SELECT\s", re.IGNORECASE)


def is_subquery(value: Any) -> bool:
    """Whether `value` is a verbatim ``(SELECT ...)`` expression."""
    return isinstance(value, str) and _SUBQUERY_RE.match(value) is not None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def build_fields(fields: Fields) -> str:
    if fields is None:
        return "*"
    if isinstance(fields, str):
        return fields or "*"
    return ", ".join(fields) or "*"


def build_where(criteria: Criteria) -> Query:
    """
    Build a WHERE clause (with leading space) and its parameters.

    Empty criteria yield no clause, i.e. "match all". Destructive callers
    must guard against that themselves.
    """
    if not criteria:
        return "", []

    if isinstance(criteria, str):
        return f" WHERE {criteria}", []

    if not isinstance(criteria, Mapping):
        log.warning("Ignoring unsupported criteria", extra={"criteria_type": type(criteria).__name__})
        return "", []

    parts: List[str] = []
    params: List[Any] = []
    for key, value in criteria.items():
        if isinstance(key, int):
            parts.append(str(value))
        elif _is_sequence(value):
            values = list(value)
            if not values:
                # IN () is invalid SQL; an empty set matches nothing.
                parts.append("1 = 0")
                continue
            placeholders = ",".join("?" for _ in values)
            parts.append(f"{key} IN ({placeholders})")
            params.extend(values)
        else:
            parts.append(f"{key} = ?")
            params.append(value)

    return " WHERE " + " AND ".join(parts), params


def _order_part(column: str, direction: Optional[str]) -> str:
    return f"{column} {(direction or 'ASC').upper()}"


def _order_parts(orders: Iterable[Any]) -> Iterable[str]:
    for item in orders:
        if isinstance(item, str):
            tokens = item.split()
            if not tokens:
                continue
            yield _order_part(tokens[0], tokens[1] if len(tokens) > 1 else None)
        elif isinstance(item, Mapping):
            for column, direction in item.items():
                yield _order_part(column, direction)
        elif isinstance(item, (list, tuple)) and item:
            yield _order_part(item[0], item[1] if len(item) > 1 else None)


def build_order(orders: OrderSpec) -> str:
    """Build an ORDER BY clause (with leading space), or an empty string."""
    if not orders:
        return ""

    if isinstance(orders, str):
        return f" ORDER BY {orders}"

    if isinstance(orders, Mapping):
        parts = [_order_part(column, direction) for column, direction in orders.items()]
    else:
        parts = list(_order_parts(orders))

    if not parts:
        return ""
    return " ORDER BY " + ", ".join(parts)


def build_select(
    table: str,
    fields: Fields = None,
    criteria: Criteria = None,
    orders: OrderSpec = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Query:
    """
    Build a SELECT statement.

    Clause order is WHERE, ORDER BY, OFFSET, FETCH FIRST, as DB2 for i
    requires. Paging values are integers and are emitted inline.
    """
    where, params = build_where(criteria)
    order = build_order(orders)
    offset_sql = f" OFFSET {int(offset)} ROWS" if offset else ""
    limit_sql = f" FETCH FIRST {int(limit)} ROWS ONLY" if limit else ""

    sql = f"SELECT {build_fields(fields)} FROM {table}{where}{order}{offset_sql}{limit_sql}"
    return sql, params


def build_insert(table: str, data: Mapping[str, Any]) -> Query:
    """Build an INSERT; ``(SELECT ...)`` values are inlined, the rest bound."""
    placeholders: List[str] = []
    params: List[Any] = []
    for value in data.values():
        if is_subquery(value):
            placeholders.append(value)
        else:
            placeholders.append("?")
            params.append(value)

    columns = ", ".join(data.keys())
    sql = f"INSERT INTO {table} ({columns}) VALUES ({', '.join(placeholders)})"
    return sql, params


def build_update(table: str, data: Mapping[str, Any], conditions: Criteria) -> Query:
    """Build an UPDATE; parameters are SET values followed by WHERE values."""
    where, condition_params = build_where(conditions)

    assignments: List[str] = []
    params: List[Any] = []
    for column, value in data.items():
        if is_subquery(value):
            assignments.append(f"{column} = {value}")
        else:
            assignments.append(f"{column} = ?")
            params.append(value)

    sql = f"UPDATE {table} SET {', '.join(assignments)}{where}"
    return sql, params + condition_params


def build_delete(table: str, conditions: Criteria) -> Query:
    where, params = build_where(conditions)
    return f"DELETE FROM {table}{where}", params


def build_count(table: str, conditions: Criteria = None) -> Query:
    where, params = build_where(conditions)
    return f"SELECT COUNT(*) FROM {table}{where}", params


def build_max(table: str, column: str, increment: int = 0) -> str:
    """``SELECT MAX(column) [+ increment] FROM table``."""
    expression = f"MAX({column})"
    if increment:
        expression = f"{expression} + {int(increment)}"
    return f"SELECT {expression} FROM {table}"


__all__ = [
    "Criteria",
    "Fields",
    "OrderSpec",
    "Query",
    "build_count",
    "build_delete",
    "build_fields",
    "build_insert",
    "build_max",
    "build_order",
    "build_select",
    "build_update",
    "build_where",
    "is_subquery",
]

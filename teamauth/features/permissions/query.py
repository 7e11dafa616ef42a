"""
Conditions and filters.

Rule conditions and the filters derived from them share one small
Mongo-like syntax:
- {"field": value} equality, dotted paths reach nested fields and a list
  field matches when it contains the value
- {"field": {"$ne" | "$in" | "$nin" | "$exists": ...}}
- {"$or" | "$and" | "$nor": [filter, ...]}

Conditions are evaluated in memory against resource data, filters are
translated to SQLAlchemy clauses to restrict listings.
"""
import copy
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import and_, false, not_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from teamauth.features.permissions.rules import Rule


_MISSING = object()


# ============================================================================
# In-memory matching
# ============================================================================

def _resolve_path(data: Any, path: str) -> Any:
    value = data
    for part in path.split("."):
        if isinstance(value, dict):
            value = value.get(part, _MISSING)
        elif isinstance(value, list):
            # Collect the field over every item, like array traversal in queries
            collected = []
            for item in value:
                if isinstance(item, dict) and part in item:
                    collected.append(item[part])
            value = collected if collected else _MISSING
        else:
            return _MISSING
        if value is _MISSING:
            return _MISSING
    return value


def _equals(value: Any, expected: Any) -> bool:
    if value is _MISSING:
        return expected is None
    if value == expected:
        return True
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return False


def _match_operator(value: Any, operator: str, argument: Any) -> bool:
    if operator == "$ne":
        return not _equals(value, argument)
    if operator == "$in":
        return any(_equals(value, candidate) for candidate in argument)
    if operator == "$nin":
        return not any(_equals(value, candidate) for candidate in argument)
    if operator == "$exists":
        return (value is not _MISSING) == bool(argument)
    raise ValueError(f"Unsupported operator {operator}")


def matches_conditions(conditions: Optional[Dict[str, Any]], data: Any) -> bool:
    """Evaluate conditions against resource data, no conditions always match."""
    if not conditions:
        return True
    for key, expected in conditions.items():
        if key == "$or":
            if not any(matches_conditions(item, data) for item in expected):
                return False
        elif key == "$and":
            if not all(matches_conditions(item, data) for item in expected):
                return False
        elif key == "$nor":
            if any(matches_conditions(item, data) for item in expected):
                return False
        else:
            value = _resolve_path(data, key)
            if isinstance(expected, dict) and expected and all(op.startswith("$") for op in expected):
                if not all(_match_operator(value, op, arg) for op, arg in expected.items()):
                    return False
            elif not _equals(value, expected):
                return False
    return True


# ============================================================================
# Filter generation
# ============================================================================

def rules_to_query(rules: Iterable[Rule]) -> Optional[Dict[str, Any]]:
    """
    Build a filter from rules given most recent first.

    Conditional grants are OR-ed, conditional denials are AND-ed as $nor.
    An unconditional grant allows everything not denied so far, an
    unconditional denial hides every older rule.
    Returns None when the rules grant nothing.
    """
    query: Dict[str, Any] = {}
    for rule in rules:
        operator = "$and" if rule.inverted else "$or"
        if not rule.conditions:
            if rule.inverted:
                break
            query.pop(operator, None)
            return query
        conditions = copy.deepcopy(rule.conditions)
        condition = {"$nor": [conditions]} if rule.inverted else conditions
        query.setdefault(operator, []).append(condition)
    return query if "$or" in query else None


def remove_context(query: Any) -> Any:
    """Drop the virtual `context` key from a filter, at any depth, in place."""
    if isinstance(query, dict):
        query.pop("context", None)
        for value in query.values():
            remove_context(value)
    elif isinstance(query, list):
        for item in query:
            remove_context(item)
    return query


# ============================================================================
# SQLAlchemy translation
# ============================================================================

def _column(model, key: str):
    name = model.column_for(key)
    column = model.__table__.columns.get(name)
    if column is None:
        raise ValueError(f"{model.__name__} has no field {key!r}")
    return getattr(model, column.key)


def _field_clause(model, key: str, expected: Any) -> ColumnElement:
    column = _column(model, key)
    if isinstance(expected, dict) and expected and all(op.startswith("$") for op in expected):
        clauses: List[ColumnElement] = []
        for operator, argument in expected.items():
            if operator == "$ne":
                clauses.append(column.is_not(None) if argument is None else or_(column != argument, column.is_(None)))
            elif operator == "$in":
                clauses.append(column.in_(list(argument)) if argument else false())
            elif operator == "$nin":
                clauses.append(or_(column.not_in(list(argument)), column.is_(None)) if argument else true())
            elif operator == "$exists":
                clauses.append(column.is_not(None) if argument else column.is_(None))
            else:
                raise ValueError(f"Unsupported operator {operator}")
        return and_(true(), *clauses)
    if expected is None:
        return column.is_(None)
    return column == expected


def filter_to_clause(model, query: Optional[Dict[str, Any]]) -> ColumnElement:
    """
    Translate a filter into a WHERE clause on a model.

    None stands for "nothing allowed" and yields a clause matching no row,
    an empty filter matches every row.
    """
    if query is None:
        return false()
    clauses: List[ColumnElement] = []
    for key, expected in query.items():
        if key == "$or":
            clauses.append(or_(false(), *(filter_to_clause(model, item) for item in expected)))
        elif key == "$and":
            clauses.append(and_(true(), *(filter_to_clause(model, item) for item in expected)))
        elif key == "$nor":
            clauses.append(not_(or_(false(), *(filter_to_clause(model, item) for item in expected))))
        else:
            clauses.append(_field_clause(model, key, expected))
    return and_(true(), *clauses)

from __future__ import annotations

from typing import Any, List, Mapping, Tuple

from .identifiers import validate_column, validate_operator
from .specs import BoundParameter, normalize_column, normalize_condition

# Placeholder prefixes per statement section; distinct so SET and WHERE never collide.
INSERT_PREFIX = "ins_"
SET_PREFIX = "set_"
WHERE_PREFIX = "where_"


def build_insert_columns(values: Mapping[str, Any]) -> Tuple[str, str, List[BoundParameter]]:
    """
    Build the column list and placeholder list of an INSERT.

    Returns ("a, b", ":ins_0, :ins_1", bindings).
    """
    columns: List[str] = []
    placeholders: List[str] = []
    bindings: List[BoundParameter] = []
    for index, (column, spec) in enumerate(values.items()):
        col = normalize_column(column, spec)
        validate_column(col.column)
        name = f"{INSERT_PREFIX}{index}"
        columns.append(col.column)
        placeholders.append(f":{name}")
        bindings.append(BoundParameter(name, col.value, col.datatype))
    return ", ".join(columns), ", ".join(placeholders), bindings


def build_set_clause(values: Mapping[str, Any]) -> Tuple[str, List[BoundParameter]]:
    clauses: List[str] = []
    bindings: List[BoundParameter] = []
    for index, (column, spec) in enumerate(values.items()):
        col = normalize_column(column, spec)
        validate_column(col.column)
        name = f"{SET_PREFIX}{index}"
        clauses.append(f"{col.column} = :{name}")
        bindings.append(BoundParameter(name, col.value, col.datatype))
    return ", ".join(clauses), bindings


def build_where_clause(conditions: Mapping[str, Any]) -> Tuple[str, List[BoundParameter]]:
    """
    Build a flat AND-joined WHERE clause.

    NULL compared with = / != / <> becomes IS NULL / IS NOT NULL and takes no
    placeholder.
    """
    clauses: List[str] = []
    bindings: List[BoundParameter] = []
    index = 0
    for column, spec in conditions.items():
        cond = normalize_condition(column, spec)
        validate_column(cond.column)
        validate_operator(cond.operator)

        if cond.value is None:
            if cond.operator == "=":
                clauses.append(f"{cond.column} IS NULL")
                continue
            if cond.operator in ("!=", "<>"):
                clauses.append(f"{cond.column} IS NOT NULL")
                continue

        name = f"{WHERE_PREFIX}{index}"
        clauses.append(f"{cond.column} {cond.operator} :{name}")
        bindings.append(BoundParameter(name, cond.value, cond.datatype))
        index += 1
    return " AND ".join(clauses), bindings

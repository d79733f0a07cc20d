from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from ..errors import InvalidArgument


class ParamType(IntEnum):
    """Driver type hints. Numbered like the PDO::PARAM_* tags existing callers pass."""

    NULL = 0
    INT = 1
    STR = 2
    LOB = 3
    BOOL = 5


@dataclass(frozen=True)
class ColumnSpec:
    column: str
    value: Any
    datatype: int | None = None


@dataclass(frozen=True)
class ConditionSpec:
    column: str
    operator: str
    value: Any
    datatype: int | None = None


@dataclass(frozen=True)
class BoundParameter:
    placeholder: str | None
    value: Any
    datatype: int | None = None


def normalize_value(spec: Any) -> tuple[Any, int | None]:
    """
    Split a value spec into (value, datatype).

    A spec is either a bare scalar or a mapping {"value": ..., "datatype": ...}.
    """
    value = spec
    datatype = None
    if isinstance(spec, Mapping):
        if "value" not in spec:
            raise InvalidArgument("normalize_value: value specification must include a value key.")
        value = spec["value"]
        datatype = spec.get("datatype")

    # bool is an int subclass but never a valid type tag
    if datatype is not None and (isinstance(datatype, bool) or not isinstance(datatype, int)):
        raise InvalidArgument("normalize_value: datatype must be an integer or None.")
    return value, datatype


def normalize_column(column: Any, spec: Any) -> ColumnSpec:
    if not isinstance(column, str) or column == "":
        raise InvalidArgument("value keys must be column names.")
    value, datatype = normalize_value(spec)
    return ColumnSpec(column, value, datatype)


def normalize_condition(column: Any, spec: Any) -> ConditionSpec:
    if not isinstance(column, str) or column == "":
        raise InvalidArgument("condition keys must be column names.")
    operator = "="
    if isinstance(spec, Mapping):
        # only a missing operator defaults to "="; "" and other junk go to the whitelist check
        operator = spec.get("operator")
        if operator is None:
            operator = "="
        if not isinstance(operator, str):
            raise InvalidArgument(f"unsupported operator {operator!r}.")
        operator = operator.upper()
        spec = {k: v for k, v in spec.items() if k != "operator"}
    value, datatype = normalize_value(spec)
    return ConditionSpec(column, operator, value, datatype)

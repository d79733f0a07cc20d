"""
Audit column policy.

insert: when neither created_* column is given all four audit columns are
stamped; when both are given they are kept and updated_* are filled only if
absent; one without the other is rejected.
update: created_* are rejected; updated_* are always overwritten.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

from ..errors import InvalidArgument
from .specs import ParamType

CREATED_AT = "created_at"
CREATED_BY = "created_by"
UPDATED_AT = "updated_at"
UPDATED_BY = "updated_by"

DEFAULT_ACTOR = "SYSTEM"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class AuditContext:
    """Actor stamped into created_by/updated_by. One per executor, never shared implicitly."""

    def __init__(self, actor_id: str = DEFAULT_ACTOR):
        self.actor_id = DEFAULT_ACTOR
        self.set_actor(actor_id)

    def set_actor(self, actor_id: str) -> None:
        if not isinstance(actor_id, str) or actor_id == "":
            raise InvalidArgument("set_actor: actor id cannot be empty.")
        self.actor_id = actor_id

    def __repr__(self) -> str:
        return f"AuditContext(actor_id={self.actor_id!r})"


def current_timestamp(clock: Optional[Callable[[], datetime]] = None) -> str:
    now = clock() if clock else datetime.now()
    return now.strftime(TIMESTAMP_FORMAT)


def _stamp(value: str) -> Dict[str, Any]:
    return {"value": value, "datatype": ParamType.STR}


def _ensure_updated(values: Dict[str, Any], ctx: AuditContext, now: str) -> Dict[str, Any]:
    if UPDATED_AT not in values:
        values[UPDATED_AT] = _stamp(now)
    if UPDATED_BY not in values:
        values[UPDATED_BY] = _stamp(ctx.actor_id)
    return values


def for_insert(values: Mapping[str, Any], ctx: AuditContext, now: str) -> Dict[str, Any]:
    out = dict(values)
    has_at = CREATED_AT in out
    has_by = CREATED_BY in out
    if has_at and has_by:
        return _ensure_updated(out, ctx, now)
    if has_at != has_by:
        raise InvalidArgument(f"insert: {CREATED_AT} and {CREATED_BY} must be specified together.")

    # without a caller-supplied creation pair all four columns get one stamp
    out[CREATED_AT] = _stamp(now)
    out[CREATED_BY] = _stamp(ctx.actor_id)
    out[UPDATED_AT] = _stamp(now)
    out[UPDATED_BY] = _stamp(ctx.actor_id)
    return out


def for_update(values: Mapping[str, Any], ctx: AuditContext, now: str) -> Dict[str, Any]:
    if CREATED_AT in values or CREATED_BY in values:
        raise InvalidArgument(f"update: {CREATED_AT}/{CREATED_BY} cannot be updated.")
    out = dict(values)
    out[UPDATED_AT] = _stamp(now)
    out[UPDATED_BY] = _stamp(ctx.actor_id)
    return out

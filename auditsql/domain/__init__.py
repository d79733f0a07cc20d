"""Pure statement-building logic: identifier checks, clause builders, audit policy.

No I/O here; the executor feeds results to the connection.
"""
from __future__ import annotations

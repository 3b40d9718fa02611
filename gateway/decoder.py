"""Serialization of simulated return values for transport."""

from __future__ import annotations

import base64
from typing import Any, Optional


def encode_result(value: Any) -> Optional[str]:
    """Return ``value`` as base64 XDR, or ``None`` for a void result.

    The value is only serialized, never interpreted.
    """
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    to_xdr_bytes = getattr(value, "to_xdr_bytes", None)
    if callable(to_xdr_bytes):
        return base64.b64encode(to_xdr_bytes()).decode("ascii")
    to_xdr = getattr(value, "to_xdr", None)
    if callable(to_xdr):
        return to_xdr()
    raise TypeError(f"cannot serialize result of type {type(value).__name__}")

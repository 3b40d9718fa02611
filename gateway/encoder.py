"""Conversion of request parameters into contract argument values (``SCVal``)."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from stellar_sdk import Address, StrKey, scval, xdr as stellar_xdr

from gateway.errors import ParameterError
from gateway.models import ParameterDescriptor, ParameterKind

logger = logging.getLogger(__name__)

ADDRESS_LENGTH = 56
ADDRESS_PREFIXES = ("G", "C")

U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1
I64_MIN, I64_MAX = -(2**63), 2**63 - 1
I128_MIN, I128_MAX = -(2**127), 2**127 - 1


def encode_parameters(raw_inputs: Optional[Iterable[Any]]) -> List[stellar_xdr.SCVal]:
    """Encode request parameters positionally.

    The result always has one entry per input, in input order.
    """
    if raw_inputs is None:
        return []
    return [encode_descriptor(ParameterDescriptor.from_raw(raw), index) for index, raw in enumerate(raw_inputs)]


def encode_descriptor(descriptor: ParameterDescriptor, index: int = 0) -> stellar_xdr.SCVal:
    kind, value = descriptor.kind, descriptor.value
    try:
        if kind is ParameterKind.UNSIGNED32:
            return scval.to_uint32(_as_integer(value, 0, U32_MAX))
        if kind is ParameterKind.ADDRESS:
            return scval.to_address(Address(str(value)))
        if kind is ParameterKind.BOOLEAN:
            return scval.to_bool(_as_bool(value))
        if kind is ParameterKind.TEXT:
            return scval.to_string(str(value))
        if kind is ParameterKind.SYMBOL:
            return scval.to_symbol(str(value))
        if kind is ParameterKind.I64:
            return scval.to_int64(_as_integer(value, I64_MIN, I64_MAX))
        if kind is ParameterKind.U64:
            return scval.to_uint64(_as_integer(value, 0, U64_MAX))
        if kind is ParameterKind.I128:
            return scval.to_int128(_as_integer(value, I128_MIN, I128_MAX))
        if kind is ParameterKind.AUTO:
            return _infer(value)
        if kind is ParameterKind.NATIVE:
            return native_to_scval(value)
    except (TypeError, ValueError) as exc:
        raise ParameterError(index, f"cannot encode {value!r} as {descriptor.type_name or kind.value}: {exc}") from exc
    raise ParameterError(index, f"unhandled parameter kind {kind!r}")


def parse_address(text: str) -> Optional[Address]:
    """Return an ``Address`` when ``text`` is a well-formed account or contract strkey."""
    if StrKey.is_valid_ed25519_public_key(text) or StrKey.is_valid_contract(text):
        return Address(text)
    return None


def looks_like_address(text: str) -> bool:
    return len(text) == ADDRESS_LENGTH and text.startswith(ADDRESS_PREFIXES)


def encode_text(text: str) -> stellar_xdr.SCVal:
    """Encode a bare string, preferring an address when it has an address's shape.

    Fallback policy: a string shaped like an address whose strkey does not
    validate is encoded as a plain string instead of being rejected.
    """
    if looks_like_address(text):
        address = parse_address(text)
        if address is not None:
            return scval.to_address(address)
        logger.debug("Address-shaped parameter failed strkey validation; encoding as string")
    return scval.to_string(text)


def _infer(value: Any) -> stellar_xdr.SCVal:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return scval.to_bool(value)
    if isinstance(value, (int, float)):
        return scval.to_uint32(_as_integer(value, 0, U32_MAX))
    if isinstance(value, str):
        return encode_text(value)
    return native_to_scval(value)


def native_to_scval(value: Any) -> stellar_xdr.SCVal:
    """Generic conversion of a JSON-like value without a type hint."""
    if value is None:
        return scval.to_void()
    if isinstance(value, stellar_xdr.SCVal):
        return value
    if isinstance(value, bool):
        return scval.to_bool(value)
    if isinstance(value, int):
        # non-negative integers take the unsigned types
        if value >= 0:
            if value <= U64_MAX:
                return scval.to_uint64(value)
            if value <= U128_MAX:
                return scval.to_uint128(value)
            return scval.to_uint256(value)
        if value >= I64_MIN:
            return scval.to_int64(value)
        if value >= I128_MIN:
            return scval.to_int128(value)
        return scval.to_int256(value)
    if isinstance(value, float):
        if value.is_integer():
            return native_to_scval(int(value))
        raise ValueError("fractional numbers have no contract representation")
    if isinstance(value, str):
        return scval.to_string(value)
    if isinstance(value, (bytes, bytearray)):
        return scval.to_bytes(bytes(value))
    if isinstance(value, (list, tuple)):
        return scval.to_vec([native_to_scval(item) for item in value])
    if isinstance(value, dict):
        return scval.to_map(
            {scval.to_symbol(str(key)): native_to_scval(value[key]) for key in sorted(value, key=str)}
        )
    raise TypeError(f"unsupported value type {type(value).__name__}")


def _as_integer(value: Any, minimum: int, maximum: int) -> int:
    if isinstance(value, bool):
        raise TypeError("expected a number, got a boolean")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("expected an integer")
        value = int(value)
    elif isinstance(value, str):
        value = int(value.strip(), 10)
    elif not isinstance(value, int):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    if not minimum <= value <= maximum:
        raise ValueError(f"{value} is outside [{minimum}, {maximum}]")
    return value


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise TypeError(f"expected a boolean, got {value!r}")

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from stellar_sdk import Keypair, xdr as stellar_xdr

from gateway.config import Settings
from gateway.errors import ConfigurationError


class ParameterKind(str, Enum):
    """Explicit tag carried by every parameter descriptor."""

    UNSIGNED32 = "unsigned32"
    ADDRESS = "address"
    BOOLEAN = "boolean"
    TEXT = "text"
    SYMBOL = "symbol"
    I64 = "i64"
    U64 = "u64"
    I128 = "i128"
    AUTO = "auto"
    NATIVE = "native"

    @classmethod
    def from_type_name(cls, name: str) -> "ParameterKind":
        """Resolve a client-supplied ``type`` string.

        Unknown names resolve to ``NATIVE`` so the value is still encoded,
        never dropped.
        """
        key = str(name).strip().lower()
        return _KIND_ALIASES.get(key, cls.NATIVE)


_KIND_ALIASES = {kind.value: kind for kind in ParameterKind if kind is not ParameterKind.NATIVE}
_KIND_ALIASES.update({"u32": ParameterKind.UNSIGNED32, "bool": ParameterKind.BOOLEAN, "string": ParameterKind.TEXT})


@dataclass(frozen=True)
class ParameterDescriptor:
    """One positional argument of a contract call."""

    kind: ParameterKind
    value: Any
    type_name: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "ParameterDescriptor":
        if isinstance(raw, Mapping) and raw.get("type"):
            type_name = str(raw["type"])
            return cls(kind=ParameterKind.from_type_name(type_name), value=raw.get("value"), type_name=type_name)
        return cls(kind=ParameterKind.AUTO, value=raw)


@dataclass(frozen=True)
class ServiceIdentity:
    """Key pair that only supplies a source account for simulated transactions.

    The secret never leaves this object and nothing signs with it. A
    configured secret that is not a valid seed yields an identity with a
    ``problem``; reading its public key raises :class:`ConfigurationError`.
    """

    _keypair: Optional[Keypair] = None
    problem: Optional[str] = None

    @property
    def public_key(self) -> str:
        if self._keypair is None:
            raise ConfigurationError(self.problem or "SERVICE_ACCOUNT_SECRET_KEY not configured")
        return self._keypair.public_key

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["ServiceIdentity"]:
        if not settings.service_secret:
            return None
        try:
            keypair = Keypair.from_secret(settings.service_secret)
        except ValueError:
            return cls(problem="SERVICE_ACCOUNT_SECRET_KEY is not a valid secret seed")
        return cls(keypair)

    def __repr__(self) -> str:
        if self._keypair is None:
            return f"ServiceIdentity(problem={self.problem!r})"
        return f"ServiceIdentity(public_key={self.public_key!r})"


@dataclass(frozen=True)
class SimulationOutcome:
    """Either the node's error description or the single return value (possibly void)."""

    error: Optional[str] = None
    retval: Optional[stellar_xdr.SCVal] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

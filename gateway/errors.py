"""Error taxonomy for contract calls and the RPC relay.

Every failure raised while handling a request maps to exactly one of these
classes, and each class maps to exactly one HTTP status.
"""

from __future__ import annotations


class GatewayError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def public_message(self, development: bool) -> str:
        return self.message


class ConfigurationError(GatewayError):
    """Required configuration (the service account secret) is missing or unusable."""

    error = "Server configuration error"

    def public_message(self, development: bool) -> str:
        return self.message if development else "Internal server error"


class ValidationError(GatewayError):
    """The request body cannot be used as a contract call."""

    status_code = 400
    error = "Invalid request"


class MissingFieldError(ValidationError):
    error = "Missing required fields"


class FieldTypeError(ValidationError):
    error = "Invalid field type"


class ParameterError(ValidationError):
    """A parameter could not be converted to a contract value."""

    error = "Invalid parameter"

    def __init__(self, index: int, message: str):
        super().__init__(f"parameter {index}: {message}")
        self.index = index


class SimulationError(GatewayError):
    """The node ran the invocation and the contract reported a failure."""

    status_code = 400
    error = "Simulation failed"


class NetworkError(GatewayError):
    """The upstream node could not be reached or did not answer in time."""

    error = "Upstream node unavailable"

    def public_message(self, development: bool) -> str:
        return self.message if development else "Ledger node request failed"


class UnexpectedError(GatewayError):
    error = "Failed to execute read-only function"

    def public_message(self, development: bool) -> str:
        return self.message if development else "Internal server error"

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional

from gateway.errors import FieldTypeError, MissingFieldError


class ReadOnlyCallRequest(BaseModel):
    """Body of ``POST /contract/readonly``.

    Every field accepts any JSON value so that a bad body is reported as a
    400 by :meth:`validated` rather than a 422 by FastAPI.
    """

    model_config = ConfigDict(populate_by_name=True)

    contract_id: Optional[Any] = Field(None, alias="contractId", description="Target contract strkey")
    function_name: Optional[Any] = Field(None, alias="functionName", description="Contract function to invoke")
    parameters: Optional[Any] = Field(None, description="Positional arguments, plain or {type, value}")

    def missing_fields(self) -> List[str]:
        missing = []
        if _is_blank(self.contract_id):
            missing.append("contractId")
        if _is_blank(self.function_name):
            missing.append("functionName")
        return missing

    def validated(self) -> "ReadOnlyCallRequest":
        """Return a copy with string fields stripped and ``parameters`` as a list.

        Raises:
            MissingFieldError: contractId or functionName is absent or blank.
            FieldTypeError: contractId or functionName is not a string.
        """
        missing = self.missing_fields()
        if missing:
            raise MissingFieldError(f"Missing required field(s): {', '.join(missing)}")
        for alias, value in (("contractId", self.contract_id), ("functionName", self.function_name)):
            if not isinstance(value, str):
                raise FieldTypeError(f"{alias} must be a string, got {type(value).__name__}")
        # anything but a list means no arguments
        parameters = self.parameters if isinstance(self.parameters, list) else []
        return self.model_copy(
            update={
                "contract_id": self.contract_id.strip(),
                "function_name": self.function_name.strip(),
                "parameters": parameters,
            }
        )


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


class ReadOnlyCallResponse(BaseModel):
    success: bool = True
    result: Optional[str] = Field(None, description="Return value as base64 XDR, null when void")


class ErrorResponse(BaseModel):
    error: str
    message: str

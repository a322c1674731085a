"""
Validation pipeline shared by all operations.

Input models are pydantic models validated in lax mode: type coercion
(string -> int, string -> bool, string -> date) happens first, then the
field constraints and validators run on the coerced values.

validate_input() turns a pydantic failure into a VALIDATION result carrying
the first field message; field_errors() exposes the full structured list.
"""

from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from greenfleet.platform.action_result import ActionResult, ErrorCode, fail, ok

M = TypeVar("M", bound=BaseModel)


def _message(error: Dict[str, Any]) -> str:
    # ValueError raised in a validator: use its text without pydantic's prefix
    if error.get("type") == "value_error":
        cause = (error.get("ctx") or {}).get("error")
        if cause is not None:
            return str(cause)
    return error.get("msg", "Invalid value")


def field_errors(exc: ValidationError) -> List[Dict[str, str]]:
    """Structured list of {"field": ..., "message": ...} in pydantic order."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
        errors.append({"field": field, "message": _message(error)})
    return errors


def validate_input(model: Type[M], raw: Any) -> ActionResult[M]:
    """Validate raw input (dict or model) into `model`, or return VALIDATION."""
    if raw is None:
        raw = {}
    if isinstance(raw, BaseModel):
        raw = raw.model_dump()
    if not isinstance(raw, dict):
        return fail(ErrorCode.VALIDATION, "Invalid input")
    try:
        return ok(model.model_validate(raw))
    except ValidationError as exc:
        errors = field_errors(exc)
        return fail(ErrorCode.VALIDATION, errors[0]["message"] if errors else "Invalid input")

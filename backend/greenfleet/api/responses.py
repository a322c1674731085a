"""Render ActionResult values as HTTP responses."""

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from greenfleet.platform.action_result import ActionResult, http_status_for, to_dict


def render(result: ActionResult) -> JSONResponse:
    """JSON envelope with 200 on success or the status mapped from the error code."""
    return JSONResponse(
        status_code=http_status_for(result),
        content=jsonable_encoder(to_dict(result)),
    )

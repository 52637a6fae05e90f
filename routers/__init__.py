from typing import Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from services import ServiceResult


def respond(result: ServiceResult, key: Optional[str] = None, **extra) -> JSONResponse:
    """Render a service result in the {"success": ..., ...} envelope."""
    if not result.success:
        return JSONResponse(
            {"success": False, "error": result.error},
            status_code=result.status_code or 500,
        )

    body = {"success": True}
    if result.message:
        body["message"] = result.message
    if key:
        body[key] = result.data
    body.update(result.meta)
    body.update(extra)
    return JSONResponse(jsonable_encoder(body), status_code=result.status_code)

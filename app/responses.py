from typing import Any

from fastapi import Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


def _encode(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [_encode(item) for item in data]
    return jsonable_encoder(data)


def json_success(data: Any, status_code: int = 200) -> JSONResponse:
    """Wrap `data` as {"success": true, "data": ...}."""
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "data": _encode(data)},
    )


def json_error(message: str, status_code: int, issues: list[dict] | None = None) -> JSONResponse:
    error: dict[str, Any] = {"message": message}
    if issues is not None:
        error["issues"] = issues
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
    )


def no_content() -> Response:
    return Response(status_code=204)

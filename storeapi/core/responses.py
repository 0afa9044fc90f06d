"""Uniform JSON envelopes for success and failure responses."""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success(payload: Any, message: str, status: int = 200) -> JSONResponse:
    body = {"payload": jsonable_encoder(payload), "message": message, "status": status}
    return JSONResponse(body, status_code=status)


def failure(message: str, status: int, **extra: Any) -> JSONResponse:
    body = {"message": message, "status": status}
    body.update(jsonable_encoder(extra))
    return JSONResponse(body, status_code=status)

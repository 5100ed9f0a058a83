"""Public configuration routes."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from api.dependencies import get_configuration, require_upload_whitelisted
from core.config import Configuration
from core.response import (
    Response as ApiResponse,
    success_response,
)


router = APIRouter(tags=["Configuration"])


@router.get(
    "/config",
    summary="Client-visible server configuration",
    response_model=ApiResponse[dict[str, Any]],
)
async def get_public_config(config: Configuration = Depends(get_configuration)):
    return success_response(data=config.to_public_dict())


@router.get(
    "/upload/check",
    summary="Whether the caller may upload from its address",
    response_model=ApiResponse[dict[str, Any]],
    dependencies=[Depends(require_upload_whitelisted)],
)
async def check_upload_allowed():
    return success_response(data={"allowed": True})

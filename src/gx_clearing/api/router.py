# src/gx_clearing/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_clearing.application import service as svc
from src.gx_common.database import get_db_session
from src.gx_common.response import ApiResponse, success_response
from src.gx_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/trades", tags=["trades"])


@router.get("")
async def list_trades(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor (trade ID)"),
) -> ApiResponse:
    data = await svc.list_trades(user_id, limit, cursor, db)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp

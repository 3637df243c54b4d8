"""gx_account REST API: balances and ledger journal, JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_account.application import service as svc
from src.gx_common.database import get_db_session
from src.gx_common.response import ApiResponse, success_response
from src.gx_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/account", tags=["account"])


@router.get("")
async def get_balance(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await svc.get_balance(user_id, db)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/ledger")
async def list_ledger(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    cursor: int | None = Query(None, description="Pagination cursor (ledger entry id)"),
) -> ApiResponse:
    data = await svc.list_ledger(user_id, cursor, limit, db)
    resp = success_response(data.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp

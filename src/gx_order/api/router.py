# src/gx_order/api/router.py
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_common.database import get_db_session
from src.gx_common.response import ApiResponse, success_response
from src.gx_gateway.auth.dependencies import get_current_user_id
from src.gx_order.application import service as svc
from src.gx_order.application.schemas import PlaceOrderRequest
from src.gx_pipeline.infrastructure.queue import RedisJobQueue, get_job_queue

router = APIRouter(prefix="/orders", tags=["orders"])


def _envelope(data: dict, request: Request) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=201)
async def place_order(
    req: PlaceOrderRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    queue: Annotated[RedisJobQueue, Depends(get_job_queue)],
    request: Request,
) -> ApiResponse:
    order = await svc.place_order(req, user_id, db, queue)
    return _envelope(order.model_dump(mode="json"), request)


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await svc.cancel_order(order_id, user_id, db)
    return _envelope(data.model_dump(), request)


@router.get("")
async def list_orders(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: Literal["OPEN", "PARTIAL", "FILLED", "CANCELLED"] | None = Query(
        None, description="Filter by order status"
    ),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor (order ID)"),
) -> ApiResponse:
    data = await svc.list_orders(user_id, status, limit, cursor, db)
    return _envelope(data.model_dump(mode="json"), request)


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await svc.get_order(order_id, user_id, db)
    return _envelope(data.model_dump(mode="json"), request)

# src/gx_order/application/service.py
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.gx_account.infrastructure.persistence import AccountRepository
from src.gx_clearing.application.schemas import TradeResponse
from src.gx_clearing.infrastructure.trades_repository import TradesRepository
from src.gx_common.datetime_utils import utc_now
from src.gx_common.errors import (
    DuplicateOrderError,
    ForbiddenError,
    OrderNotCancellableError,
    OrderNotFoundError,
)
from src.gx_common.grams import mg_to_grams
from src.gx_common.id_generator import generate_id
from src.gx_order.application.schemas import (
    CancelOrderResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
)
from src.gx_order.domain.models import Order
from src.gx_order.infrastructure.persistence import OrderRepository
from src.gx_pipeline.domain.jobs import Job
from src.gx_pipeline.infrastructure.queue import JobQueueProtocol

logger = logging.getLogger(__name__)

_repo = OrderRepository()
_accounts = AccountRepository()
_trades = TradesRepository()


def _order_to_response(order: Order) -> OrderResponse:
    remaining = order.remaining_mg or 0
    return OrderResponse(
        id=order.id,
        client_order_id=order.client_order_id,
        side=order.side,
        amount_gram=mg_to_grams(order.amount_mg),
        remaining_gram=mg_to_grams(remaining),
        filled_gram=mg_to_grams(order.filled_mg),
        amount_mg=order.amount_mg,
        remaining_mg=remaining,
        price_per_gram=order.price_per_gram,
        status=order.status,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


async def _get_owned(order_id: str, user_id: str, db: AsyncSession, lock: bool = False) -> Order:
    order = await (_repo.get_for_update if lock else _repo.get_by_id)(order_id, db)
    if order is None:
        raise OrderNotFoundError(order_id)
    if order.user_id != user_id:
        raise ForbiddenError()
    return order


async def place_order(
    req: PlaceOrderRequest, user_id: str, db: AsyncSession, queue: JobQueueProtocol
) -> OrderResponse:
    """Persist a new OPEN order, then queue it for matching.

    The discover job is enqueued only after the order row is committed, so a
    worker never looks for an order that is not there yet.
    """
    amount_mg = req.amount_mg

    # Idempotency check
    if req.client_order_id:
        existing = await _repo.get_by_client_order_id(req.client_order_id, user_id, db)
        if existing:
            if (
                existing.side != req.side
                or existing.amount_mg != amount_mg
                or existing.price_per_gram != req.price_per_gram
            ):
                raise DuplicateOrderError(req.client_order_id)
            return _order_to_response(existing)

    now = utc_now()
    order = Order(
        id=generate_id(),
        user_id=user_id,
        side=req.side,
        amount_mg=amount_mg,
        price_per_gram=req.price_per_gram,
        client_order_id=req.client_order_id,
        created_at=now,
        updated_at=now,
    )
    await _accounts.ensure_account(db, user_id)
    await _repo.save(order, db)
    await db.commit()

    try:
        await queue.enqueue(Job.discover(order.id))
    except Exception:
        logger.error(
            "Order %s committed but its discover job could not be queued; re-submit it for matching",
            order.id,
            exc_info=True,
            extra={"order_id": order.id},
        )
        raise
    logger.info(
        "Order %s placed: user=%s side=%s amount=%d mg price=%d",
        order.id,
        user_id,
        order.side,
        order.amount_mg,
        order.price_per_gram,
    )
    return _order_to_response(order)


async def cancel_order(order_id: str, user_id: str, db: AsyncSession) -> CancelOrderResponse:
    """OPEN/PARTIAL -> CANCELLED. Queued settlements for it skip on re-validation."""
    order = await _get_owned(order_id, user_id, db, lock=True)
    if not order.is_cancellable:
        raise OrderNotCancellableError(order.id, order.status)
    order.status = "CANCELLED"
    await _repo.update_status(order, db)
    await db.commit()
    logger.info("Order %s cancelled by user %s", order.id, user_id)
    return CancelOrderResponse(
        order_id=order.id,
        status=order.status,
        remaining_gram_cancelled=mg_to_grams(order.remaining_mg or 0),
    )


async def get_order(order_id: str, user_id: str, db: AsyncSession) -> OrderDetailResponse:
    order = await _get_owned(order_id, user_id, db)
    trades = await _trades.list_by_order(order.id, order.side, db)
    return OrderDetailResponse(
        **_order_to_response(order).model_dump(),
        trades=[TradeResponse(**t) for t in trades],
    )


async def list_orders(
    user_id: str,
    status: str | None,
    limit: int,
    cursor: str | None,
    db: AsyncSession,
) -> OrderListResponse:
    statuses = [status] if status else None
    orders = await _repo.list_by_user(
        user_id=user_id,
        statuses=statuses,
        limit=limit + 1,
        cursor_id=cursor,
        db=db,
    )
    has_more = len(orders) > limit
    if has_more:
        orders = orders[:limit]
    return OrderListResponse(
        items=[_order_to_response(o) for o in orders],
        next_cursor=orders[-1].id if has_more else None,
        has_more=has_more,
    )

"""Job payloads carried by the queue.

discover      find counter-orders for a newly active order.
settle_chain  settle one order against an ordered list of counter-orders,
              strictly one after another.
"""
import json
from dataclasses import asdict, dataclass, field
from typing import Any

from src.gx_common.enums import JobKind
from src.gx_common.errors import UnknownJobError
from src.gx_common.id_generator import generate_id


@dataclass(frozen=True)
class Job:
    kind: str
    order_id: str
    matched_order_ids: list[str] = field(default_factory=list)
    job_id: str = field(default_factory=generate_id)

    @classmethod
    def discover(cls, order_id: str) -> "Job":
        return cls(kind=JobKind.DISCOVER.value, order_id=order_id)

    @classmethod
    def settle_chain(cls, order_id: str, matched_order_ids: list[str]) -> "Job":
        return cls(
            kind=JobKind.SETTLE_CHAIN.value,
            order_id=order_id,
            matched_order_ids=list(matched_order_ids),
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: str) -> "Job":
        data: dict[str, Any] = json.loads(raw)
        kind = data.get("kind", "")
        if kind not in {k.value for k in JobKind}:
            raise UnknownJobError(str(kind))
        return cls(
            kind=kind,
            order_id=data["order_id"],
            matched_order_ids=list(data.get("matched_order_ids") or []),
            job_id=data.get("job_id") or generate_id(),
        )

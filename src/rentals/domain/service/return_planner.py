"""Domain service: Return Planner.

Turns an operator's per-item return decisions into the transitions the
order repository applies.  The result is split in two batches:

  Batch 1 — full and partial returns, whole-line missing reports and
            reversals of earlier returns.  Submitted with the late fee.
  Batch 2 — the missing remainder of every partial return.  Only
            submitted after batch 1 is acknowledged, and never with the
            late fee.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.line_item import LineItem, ReturnStatus
from rentals.domain.model.order import RentalOrder
from rentals.domain.model.return_transition import ReturnPlan, ReturnTransition
from rentals.domain.model.value_objects import Money

REMAINDER_NOTE = "Items not returned"


@dataclass(frozen=True)
class DamageReport:
    cost: Money | None = None
    description: str | None = None


@dataclass
class ReturnRequest:
    """What the operator asked for on the return screen.

    ``missing`` maps item id -> note (None when no note was typed).
    ``partial`` maps item id -> units coming back now.
    """

    selected: set[str] = field(default_factory=set)
    deselected: set[str] = field(default_factory=set)
    missing: dict[str, str | None] = field(default_factory=dict)
    partial: dict[str, int] = field(default_factory=dict)
    damage: dict[str, DamageReport] = field(default_factory=dict)
    late_fee: Money | None = None


def plan_return(
    order: RentalOrder,
    request: ReturnRequest,
    now: datetime | None = None,
) -> ReturnPlan:
    """Build the two-batch plan for *request* against *order*'s items."""
    now = now or datetime.now()
    items = {item.id: item for item in order.items if item.id}

    unknown = (
        request.selected | request.deselected | set(request.missing) | set(request.partial)
    ) - set(items)
    if unknown:
        raise ValidationError(
            f"Items not found in order {order.invoice_number}: {', '.join(sorted(unknown))}"
        )

    first_batch: list[ReturnTransition] = []
    missing_batch: list[ReturnTransition] = []

    # Iterate in order so the plan is deterministic.
    for item in order.items:
        if item.id not in request.selected or item.is_returned:
            continue
        damage = request.damage.get(item.id, DamageReport())

        if item.id in request.missing:
            first_batch.append(
                ReturnTransition(
                    item_id=item.id,
                    target_status=ReturnStatus.MISSING,
                    damage_cost=damage.cost,
                    damage_description=_clean(damage.description),
                    note=_clean(request.missing[item.id]),
                )
            )
            continue

        pending = item.pending_quantity
        if pending == 0:
            continue
        qty = request.partial.get(item.id)
        if qty is not None and not 0 < qty <= pending:
            raise ValidationError(
                f"Returned quantity for {item.display_name} must be between 1 and {pending}"
            )

        if qty is not None and qty < pending:
            first_batch.append(
                ReturnTransition(
                    item_id=item.id,
                    target_status=ReturnStatus.RETURNED,
                    returned_at=now,
                    quantity=qty,
                )
            )
            missing_batch.append(
                ReturnTransition(
                    item_id=item.id,
                    target_status=ReturnStatus.MISSING,
                    quantity=pending - qty,
                    damage_cost=damage.cost,
                    damage_description=_clean(damage.description),
                    note=_remainder_note(damage),
                )
            )
        else:
            first_batch.append(
                ReturnTransition(
                    item_id=item.id,
                    target_status=ReturnStatus.RETURNED,
                    returned_at=now,
                    quantity=pending,
                    damage_cost=damage.cost,
                    damage_description=_clean(damage.description),
                )
            )

    for item in order.items:
        if item.id in request.deselected and _was_returned(item):
            first_batch.append(
                ReturnTransition(
                    item_id=item.id,
                    target_status=ReturnStatus.NOT_YET_RETURNED,
                )
            )

    return ReturnPlan(first_batch=first_batch, missing_batch=missing_batch)


def plan_missing_remainders(order: RentalOrder) -> list[ReturnTransition]:
    """Missing transitions for partial returns whose remainder was never recorded.

    An item left RETURNED with fewer units than ordered is exactly the
    state a failed second batch leaves behind.
    """
    remainders: list[ReturnTransition] = []
    for item in order.items:
        if not item.id or not item.is_returned or item.pending_quantity == 0:
            continue
        damage = DamageReport(item.damage_cost, item.damage_description)
        remainders.append(
            ReturnTransition(
                item_id=item.id,
                target_status=ReturnStatus.MISSING,
                quantity=item.pending_quantity,
                damage_cost=item.damage_cost,
                damage_description=item.damage_description,
                note=_remainder_note(damage),
            )
        )
    return remainders


def _was_returned(item: LineItem) -> bool:
    return item.is_returned or (item.returned_quantity or 0) > 0


def _remainder_note(damage: DamageReport) -> str:
    if damage.cost is not None and not damage.cost.is_zero:
        return f"{REMAINDER_NOTE} (damage cost {damage.cost})"
    return REMAINDER_NOTE


def _clean(text: str | None) -> str | None:
    if text is None:
        return None
    text = text.strip()
    return text or None

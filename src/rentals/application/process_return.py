"""Application service: Process Return use case.

Submits a return plan in two batches:

  1. returns, reversals and whole-line missing reports, with the late fee
  2. the missing remainders of partial returns, once batch 1 is
     acknowledged, without the late fee

A batch 1 the repository rejects is a hard error and nothing is
committed.  A batch 1 that times out is different: the store may still
apply it, so the order is read back.  If the batch shows up there, the
return carries on with batch 2 rebuilt from the stored order; if not,
ReturnOutcomeUnknownError tells the operator to look before repeating.

A failed batch 2 leaves batch 1 committed; the outcome carries a warning
and the unsent transitions.  ``RetryMissingBatchHandler`` finishes the
job later: it rebuilds the remainders from the stored order, so running
it twice changes nothing.
"""

from __future__ import annotations

import logging
from datetime import datetime

from rentals.application.bounded_call import call_with_timeout
from rentals.application.dto import ReturnOutcome
from rentals.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    PersistenceError,
    PersistenceTimeoutError,
    ReturnBatchError,
    ReturnOutcomeUnknownError,
    ValidationError,
)
from rentals.domain.model.order import RentalOrder
from rentals.domain.model.return_transition import ReturnTransition
from rentals.domain.repository.order_repository import OrderRepository
from rentals.domain.service.return_planner import (
    ReturnRequest,
    plan_missing_remainders,
    plan_return,
)

logger = logging.getLogger(__name__)

MISSING_BATCH_WARNING = (
    "Items were returned, but the missing quantities could not be recorded "
    "({error}). Run retry-missing for this order or fix it manually."
)

OUTCOME_UNKNOWN = (
    "The return for order {order_id} did not answer in time and is not on "
    "the order yet; it may still be saved. Check it with 'order show'. If "
    "the items are still outstanding repeat the return, otherwise run "
    "retry-missing."
)


class ProcessReturnHandler:

    def __init__(self, order_repo: OrderRepository, timeout: float = 10.0) -> None:
        self._order_repo = order_repo
        self._timeout = timeout

    def handle(
        self,
        order_id: str,
        request: ReturnRequest,
        user_id: str,
        now: datetime | None = None,
    ) -> ReturnOutcome:
        now = now or datetime.now()
        order = _fetch(self._order_repo, order_id, self._timeout)
        plan = plan_return(order, request, now)
        if plan.is_empty:
            raise ValidationError("No changes to save")

        missing_batch = plan.missing_batch
        try:
            call_with_timeout(
                self._order_repo.apply_return_transitions,
                order_id,
                plan.first_batch,
                user_id,
                request.late_fee,
                now=now,
                timeout=self._timeout,
            )
        except PersistenceTimeoutError as exc:
            logger.warning("Return for order %s timed out: %s", order_id, exc)
            stored = self._landed_after_timeout(order, order_id)
            missing_batch = plan_missing_remainders(stored)
        except PersistenceError as exc:
            logger.error("Return for order %s failed: %s", order_id, exc)
            raise ReturnBatchError(
                f"Return could not be saved, nothing was recorded: {exc}"
            ) from exc

        logger.info(
            "Return for order %s applied: %d transitions", order_id, len(plan.first_batch)
        )
        if not missing_batch:
            return ReturnOutcome(order_id, applied=len(plan.first_batch), missing_applied=0)

        error = _submit_missing(
            self._order_repo, order_id, missing_batch, user_id, self._timeout, now
        )
        if error is not None:
            return ReturnOutcome(
                order_id,
                applied=len(plan.first_batch),
                missing_applied=0,
                warning=MISSING_BATCH_WARNING.format(error=error),
                pending_missing_batch=list(missing_batch),
            )
        return ReturnOutcome(
            order_id,
            applied=len(plan.first_batch),
            missing_applied=len(missing_batch),
        )

    def _landed_after_timeout(self, before: RentalOrder, order_id: str) -> RentalOrder:
        """Read the order back; raise unless the timed-out batch is on it."""
        try:
            stored = _fetch(self._order_repo, order_id, self._timeout)
        except PersistenceError as exc:
            raise ReturnOutcomeUnknownError(
                OUTCOME_UNKNOWN.format(order_id=order_id)
            ) from exc
        if len(stored.audit_log) <= len(before.audit_log):
            logger.error("Return for order %s is in an unknown state", order_id)
            raise ReturnOutcomeUnknownError(OUTCOME_UNKNOWN.format(order_id=order_id))
        logger.info("Return for order %s was saved late; continuing", order_id)
        return stored


class RetryMissingBatchHandler:

    def __init__(self, order_repo: OrderRepository, timeout: float = 10.0) -> None:
        self._order_repo = order_repo
        self._timeout = timeout

    def handle(
        self,
        order_id: str,
        user_id: str,
        transitions: list[ReturnTransition] | None = None,
        now: datetime | None = None,
    ) -> ReturnOutcome:
        """Record outstanding missing remainders for *order_id*.

        *transitions* defaults to whatever the stored order still lacks.
        """
        if transitions is None:
            order = _fetch(self._order_repo, order_id, self._timeout)
            transitions = plan_missing_remainders(order)
        if not transitions:
            return ReturnOutcome(order_id, applied=0, missing_applied=0)

        error = _submit_missing(
            self._order_repo, order_id, transitions, user_id, self._timeout, now
        )
        if error is not None:
            return ReturnOutcome(
                order_id,
                applied=0,
                missing_applied=0,
                warning=MISSING_BATCH_WARNING.format(error=error),
                pending_missing_batch=list(transitions),
            )
        return ReturnOutcome(order_id, applied=0, missing_applied=len(transitions))


# --- Internal helpers ---------------------------------------------------------


def _fetch(order_repo: OrderRepository, order_id: str, timeout: float) -> RentalOrder:
    order = call_with_timeout(order_repo.get_by_id, order_id, timeout=timeout)
    if order is None:
        raise EntityNotFoundError(f"Order {order_id} not found")
    return order


def _submit_missing(
    order_repo: OrderRepository,
    order_id: str,
    transitions: list[ReturnTransition],
    user_id: str,
    timeout: float,
    now: datetime | None = None,
) -> DomainException | None:
    """Submit a missing-remainder batch; return the error instead of raising."""
    try:
        call_with_timeout(
            order_repo.apply_return_transitions,
            order_id,
            transitions,
            user_id,
            None,
            now=now,
            timeout=timeout,
        )
    except DomainException as exc:
        logger.warning(
            "Missing-items batch for order %s failed; %d transitions left pending: %s",
            order_id, len(transitions), exc,
        )
        return exc
    return None

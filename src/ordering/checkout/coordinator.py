"""Order submission coordinator: the checkout pipeline.

One call to ``submit`` walks a submission through::

    VALIDATING → PRICING → REDEEMING_POINTS → PAYING_IF_NEEDED → PERSISTING
               → RECONCILING → DONE

Any gate may reject the submission (``REJECTED``); a gateway redirect ends
the local path early (``REDIRECTED``). The order is written exactly once and
only after every gate has passed. The steps that follow the write (points
decrement, notification, ledger entries) are best-effort: they run
concurrently and their failures are reported as warnings, never raised.

Submissions against the same loyalty account are serialized, and the
balance decrement is a compare-and-swap on the balance read while pricing.
Re-invoking a submission that is still running joins it. Once finished, a
submission is only recognised again through the caller's ``submission_key``:
the same result comes back and no second order is written. Without a key,
ordering the same cart again later is a new order.
"""

import asyncio
import contextlib
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum

import structlog

from ordering.checkout.errors import (
    ConnectivityError,
    OrderValidationError,
    PersistenceError,
    ReconciliationWarning,
    SubmissionError,
)
from ordering.checkout.store import CheckoutStore, RepositoryCheckoutStore
from ordering.loyalty.calculator import (
    NO_REDEMPTION,
    Redemption,
    final_total,
    is_loyalty_eligible,
    points_earned,
    resolve_redemption,
)
from ordering.loyalty.ledger import LedgerTransaction
from ordering.notification.notification import OrderNotification
from ordering.order.order import Order, OrderStatus
from ordering.order.request import OrderRequest
from ordering.order.validation import validation_errors
from ordering.pricing.calculator import cart_subtotal, line_total, price_of, resolve_add_ons
from ordering.pricing.delivery import resolve_fee
from ordering.utils.logging import add_context, clear_context
from payments.gateway.port import PaymentGateway
from payments.methods import is_cash_on_delivery, is_gateway_based
from payments.orchestrator import PaymentOrchestrator

logger = structlog.get_logger(__name__)

COMPLETED_RESULTS_LIMIT = 1024


class SubmissionStage(Enum):
    VALIDATING = "validating"
    PRICING = "pricing"
    REDEEMING_POINTS = "redeeming_points"
    PAYING_IF_NEEDED = "paying_if_needed"
    PERSISTING = "persisting"
    RECONCILING = "reconciling"
    DONE = "done"
    REJECTED = "rejected"
    REDIRECTED = "redirected"


@dataclass(frozen=True)
class PricedDraft:
    """Everything the pipeline computed before anything was written."""

    user_id: str
    is_guest: bool
    lines: tuple[dict, ...]
    subtotal: float
    delivery_fee: float
    redemption: Redemption
    final_total: float
    points_earned: int
    loyalty_eligible: bool
    expected_balance: int | None = None

    def pricing(self) -> dict:
        return {
            "total": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "points_used": self.redemption.points_to_use,
            "points_reduction": self.redemption.reduction,
            "final_total": self.final_total,
            "loyalty_points_pending": self.points_earned,
            "loyalty_eligible": self.loyalty_eligible,
        }


@dataclass
class SubmissionResult:
    submission_key: str
    stage: SubmissionStage
    draft: PricedDraft
    order_id: str | None = None
    payment_ref: str | None = None
    redirect_url: str | None = None
    warnings: list[ReconciliationWarning] = field(default_factory=list)

    @property
    def is_redirect(self) -> bool:
        return self.stage is SubmissionStage.REDIRECTED


def _always_online() -> bool:
    return True


def _order_status(method_id, payment_ref) -> OrderStatus:
    if payment_ref and is_gateway_based(method_id):
        return OrderStatus.PENDING
    return OrderStatus.EN_ATTENTE


class OrderSubmissionCoordinator:
    def __init__(
        self,
        store: CheckoutStore | None = None,
        gateway: PaymentGateway | None = None,
        is_online: Callable[[], bool] = _always_online,
    ):
        self.store = store or RepositoryCheckoutStore()
        self.gateway = gateway
        self.is_online = is_online
        self._account_locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}
        self._in_flight: dict[str, asyncio.Task] = {}
        self._completed: OrderedDict[str, SubmissionResult] = OrderedDict()

    async def submit(
        self,
        request: OrderRequest,
        account_id: str | None = None,
        is_online: Callable[[], bool] | None = None,
        clear_cart: Callable[[], None] | None = None,
    ) -> SubmissionResult:
        """Finalize ``request`` for ``account_id`` (None for guests).

        Raises a ``SubmissionError`` subclass when a gate rejects the submission.
        """
        key = request.submission_key or request.fingerprint(account_id)

        if request.submission_key and key in self._completed:
            logger.info("Submission already completed, returning stored result", submission_key=key)
            self._completed.move_to_end(key)
            return self._completed[key]

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(
                self._run_once(key, request, account_id, is_online or self.is_online, clear_cart)
            )
            self._in_flight[key] = task
        else:
            logger.info("Submission already in flight, joining it", submission_key=key)

        return await asyncio.shield(task)

    async def _run_once(self, key, request, account_id, is_online, clear_cart) -> SubmissionResult:
        add_context(submission_key=key)
        try:
            user_id = request.guest_id if request.is_guest else account_id
            async with self._serialized(None if request.is_guest else user_id):
                result = await self._run(key, request, user_id, is_online)

            if result.stage is SubmissionStage.DONE:
                if request.submission_key:
                    self._remember(key, result)
                if clear_cart is not None:
                    clear_cart()
            return result
        finally:
            self._in_flight.pop(key, None)
            clear_context("submission_key")

    @contextlib.asynccontextmanager
    async def _serialized(self, user_id):
        """Hold the account's lock; the lock is dropped once nobody holds or awaits it."""
        if not user_id:
            yield
            return

        lock = self._account_locks.setdefault(user_id, asyncio.Lock())
        self._lock_holders[user_id] = self._lock_holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[user_id] -= 1
            if not self._lock_holders[user_id]:
                del self._lock_holders[user_id]
                del self._account_locks[user_id]

    def _remember(self, key, result):
        self._completed[key] = result
        self._completed.move_to_end(key)
        while len(self._completed) > COMPLETED_RESULTS_LIMIT:
            self._completed.popitem(last=False)

    async def _run(self, key, request, user_id, is_online) -> SubmissionResult:
        stage = SubmissionStage.VALIDATING
        try:
            self._validate(request, user_id)

            stage = SubmissionStage.PRICING
            draft = await self._price(request, user_id)

            stage = SubmissionStage.REDEEMING_POINTS
            draft = await self._redeem(request, draft, is_online)

            stage = SubmissionStage.PAYING_IF_NEEDED
            payment_ref = None
            if draft.final_total > 0 and is_gateway_based(request.payment_method.id):
                outcome = await self._pay(request, draft, is_online)
                if outcome.is_redirect:
                    logger.info(
                        "Submission handed over to payment gateway",
                        amount=draft.final_total,
                        payment_ref=outcome.payment_ref,
                    )
                    return SubmissionResult(
                        submission_key=key,
                        stage=SubmissionStage.REDIRECTED,
                        draft=draft,
                        payment_ref=outcome.payment_ref,
                        redirect_url=outcome.redirect_url,
                    )
                payment_ref = outcome.payment_ref

            stage = SubmissionStage.PERSISTING
            self._validate(request, user_id)
            status = _order_status(request.payment_method.id, payment_ref)
            order_id = await self._persist(request, draft, status, payment_ref, is_online)
        except SubmissionError as exc:
            exc.stage = SubmissionStage.REJECTED
            exc.gate = stage
            logger.warning("Submission rejected", gate=stage.value, code=exc.code, detail=exc.detail)
            raise

        warnings = await self._reconcile(request, draft, order_id, status)

        logger.info(
            "Order submitted",
            order_id=order_id,
            user_id=draft.user_id,
            final_total=draft.final_total,
            points_used=draft.redemption.points_to_use,
            payment_ref=payment_ref,
            warnings=len(warnings),
        )
        return SubmissionResult(
            submission_key=key,
            stage=SubmissionStage.DONE,
            draft=draft,
            order_id=order_id,
            payment_ref=payment_ref,
            warnings=warnings,
        )

    # -------------------------------------------------------------------
    # Gates
    # -------------------------------------------------------------------
    def _validate(self, request: OrderRequest, user_id):
        errors = validation_errors(request)
        if not request.is_guest and not user_id:
            errors.setdefault("account_id", []).append("Un compte est requis pour commander")
        if errors:
            raise OrderValidationError(errors)

    async def _price(self, request: OrderRequest, user_id) -> PricedDraft:
        areas, catalog = await asyncio.gather(
            self.store.fetch_delivery_areas(),
            self.store.fetch_add_on_catalog(),
        )

        subtotal = cart_subtotal(request.cart_lines, catalog)
        delivery_fee = resolve_fee(request.address.area, areas, request.passed_delivery_fee)
        history = 0 if request.is_guest else await self.store.count_eligible_orders(user_id)

        lines = tuple(
            {
                "item_id": line.item_id,
                "item_name": line.display_name,
                "unit_price": price_of(line.unit_price),
                "quantity": line.quantity,
                "add_ons": [add_on.to_dict() for add_on in resolve_add_ons(line.selected_add_ons, catalog)],
                "line_total": line_total(line, catalog),
                "restaurant_id": line.restaurant_id,
            }
            for line in request.cart_lines
        )

        return PricedDraft(
            user_id=user_id,
            is_guest=request.is_guest,
            lines=lines,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            redemption=NO_REDEMPTION,
            final_total=final_total(subtotal, delivery_fee, 0),
            points_earned=points_earned(subtotal, history),
            loyalty_eligible=not request.is_guest and is_loyalty_eligible(subtotal),
        )

    async def _redeem(self, request: OrderRequest, draft: PricedDraft, is_online) -> PricedDraft:
        online = is_online()

        if request.use_points and not request.is_guest:
            account = await self.store.get_or_open_account(draft.user_id)
            balance = account.points_balance or 0
            redemption = resolve_redemption(True, balance, draft.subtotal + draft.delivery_fee)
            draft = replace(
                draft,
                redemption=redemption,
                final_total=final_total(draft.subtotal, draft.delivery_fee, redemption.reduction),
                expected_balance=balance,
            )

        if not online and draft.final_total > 0 and is_gateway_based(request.payment_method.id):
            raise ConnectivityError()
        return draft

    async def _pay(self, request: OrderRequest, draft: PricedDraft, is_online):
        orchestrator = PaymentOrchestrator(gateway=self.gateway, is_online=is_online)
        return await orchestrator.pay(draft.final_total, description=f"Commande: {request.label}"[:255])

    async def _persist(self, request: OrderRequest, draft: PricedDraft, status, payment_ref, is_online) -> str:
        method_id = request.payment_method.id
        is_paid = False if is_cash_on_delivery(method_id) else not payment_ref

        address = request.address
        contact = request.contact if request.is_guest else None

        try:
            order = Order.place(
                user_id=draft.user_id,
                lines=list(draft.lines),
                address={
                    "area": address.area,
                    "complete_address": address.complete_address,
                    "nickname": address.nickname,
                    "city": address.city,
                    "instructions": address.instructions,
                    "phone": address.phone or (contact.phone if contact else ""),
                },
                payment_method={
                    "method_id": method_id,
                    "name": request.payment_method.name,
                    "description": request.payment_method.description,
                },
                pricing=draft.pricing(),
                status=status,
                is_paid=is_paid,
                is_guest=request.is_guest,
                contact={"name": contact.name, "phone": contact.phone} if contact else None,
                payment_ref=payment_ref,
                restaurant_id=request.restaurant_id,
                label=request.label,
            )
            return await self.store.save_order(order)
        except Exception as exc:
            offline = not is_online()
            logger.error("Order write failed", offline=offline, error=str(exc))
            raise PersistenceError(offline=offline, detail=str(exc)) from exc

    # -------------------------------------------------------------------
    # Best-effort side effects
    # -------------------------------------------------------------------
    async def _reconcile(
        self, request: OrderRequest, draft: PricedDraft, order_id: str, status: OrderStatus
    ) -> list[ReconciliationWarning]:
        redemption = draft.redemption
        steps = {}

        if redemption.applied and not draft.is_guest:
            steps["points_redemption"] = self.store.redeem_points(
                draft.user_id, redemption.points_to_use, draft.expected_balance
            )
        steps["notification"] = self._notify(request, draft, order_id, status)
        if redemption.applied:
            steps["ledger_usage"] = self._record_ledger(
                LedgerTransaction.record_usage, draft.user_id, order_id, redemption.points_to_use
            )
        if draft.points_earned > 0 and not draft.is_guest:
            steps["ledger_grant"] = self._record_ledger(
                LedgerTransaction.record_grant, draft.user_id, order_id, draft.points_earned
            )

        logger.debug("Reconciling order", stage=SubmissionStage.RECONCILING.value, order_id=order_id, steps=list(steps))
        results = await asyncio.gather(*steps.values(), return_exceptions=True)

        warnings = []
        for step, outcome in zip(steps, results):
            if isinstance(outcome, Exception):
                warning = ReconciliationWarning(step, order_id, outcome)
                logger.warning(
                    "Post-order step failed",
                    step=step,
                    order_id=order_id,
                    error=str(outcome),
                )
                warnings.append(warning)
        return warnings

    async def _notify(self, request: OrderRequest, draft: PricedDraft, order_id: str, status: OrderStatus):
        notification = OrderNotification.for_new_order(
            order_id=order_id,
            user_id=draft.user_id,
            restaurant_id=request.restaurant_id,
            status=status.value,
            item_names=request.label,
            points_used=draft.redemption.points_to_use,
            points_reduction=draft.redemption.reduction,
        )
        await self.store.save_notification(notification)

    async def _record_ledger(self, factory, user_id, order_id, points):
        await self.store.save_ledger_transaction(factory(user_id, order_id, points))

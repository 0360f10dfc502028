"""
Settlement Service - executor for matched order pairs.

This service validates a pair of orders, clamps the fill against what both
orders have left, computes the settlement plan and applies it atomically to
the ledger, retrying transient ledger failures with the same plan.
"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional
from uuid import uuid4

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from settlement_engine.config import Settings, get_settings
from settlement_engine.core.cross_validator import ensure_crossable, max_fill_amount
from settlement_engine.core.fill_tracker import FillTracker
from settlement_engine.core.ledger import Ledger
from settlement_engine.core.numeric import is_rounding_error
from settlement_engine.core.order import Order
from settlement_engine.core.settlement import SettlementPlan, SettlementResult
from settlement_engine.core.settlement_calculator import compute_settlement
from settlement_engine.utils.exceptions import (
    CrossIncompatibleException,
    InvalidFillAmountException,
    InvalidIdentityException,
    LedgerException,
    LedgerUnavailableException,
    NoFillableAmountException,
    PriceIncompatibleException,
    RoundingErrorException,
    SettlementFailedException,
    SettlementInvariantViolation,
)
from settlement_engine.utils.logger import get_logger
from settlement_engine.utils.validators import validate_identity

# Latency samples kept for get_statistics
LATENCY_WINDOW = 10_000


class SettlementService:
    """
    Service class executing order matches against a ledger.

    Match attempts are serialised with a lock so fill clamping, ledger
    application and fill recording happen as one step per pair.
    """

    def __init__(
        self,
        ledger: Ledger,
        fill_tracker: Optional[FillTracker] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize settlement service.

        Args:
            ledger: Ledger the settlement plans are applied to
            fill_tracker: Registry of filled amounts (a new one if omitted)
            settings: Configuration (global settings if omitted)
        """
        self.ledger = ledger
        self.fill_tracker = fill_tracker if fill_tracker is not None else FillTracker()
        self.settings = settings if settings is not None else get_settings()
        self.logger = get_logger(
            log_level=self.settings.log_level,
            log_dir=self.settings.log_dir or None,
            use_json=self.settings.use_json_logs,
        )
        self.settlement_callbacks: List[Callable[[SettlementResult], None]] = []
        self.statistics: Dict[str, int] = {
            "matches_attempted": 0,
            "matches_settled": 0,
            "matches_rejected": 0,
            "settlements_failed": 0,
            "ledger_retries": 0,
            "transfers_applied": 0,
        }
        self.lock = threading.Lock()
        self._latencies: Deque[float] = deque(maxlen=LATENCY_WINDOW)

        self.logger.info(f"SettlementService initialized (fee asset: {self.settings.fee_asset})")

    def match_orders(
        self,
        left: Order,
        right: Order,
        taker: str,
        left_fill_amount: Optional[int] = None,
    ) -> SettlementResult:
        """
        Match two orders and settle the result on the ledger.

        Args:
            left: Left order
            right: Right order
            taker: Identity executing the match
            left_fill_amount: Left taker asset to fill; the largest fill both
                orders support if omitted

        Returns:
            SettlementResult describing the applied plan

        Raises:
            CrossIncompatibleException: If the orders do not trade the same pair
            PriceIncompatibleException: If the prices do not cross
            NoFillableAmountException: If either order is exhausted
            InvalidFillAmountException: If left_fill_amount exceeds what can be filled
            InvalidIdentityException: If the taker identity is malformed
            RoundingErrorException: If the fill truncates beyond tolerance (when enabled)
            SettlementInvariantViolation: If the computed plan breaks an invariant
            SettlementFailedException: If the ledger rejected the plan
        """
        start_time = time.time()

        with self.lock:
            self._record_stat("matches_attempted")
            try:
                plan = self._plan(left, right, taker, left_fill_amount)
            except (CrossIncompatibleException, PriceIncompatibleException,
                    NoFillableAmountException, InvalidFillAmountException,
                    InvalidIdentityException, RoundingErrorException) as e:
                self._record_stat("matches_rejected")
                self.logger.log_rejection(left.order_id, right.order_id, e.message)
                raise
            except SettlementInvariantViolation as e:
                self._record_stat("settlements_failed")
                self.logger.log_error(
                    f"Invariant violated matching {left.order_id} against {right.order_id}",
                    e,
                    left_order_id=left.order_id,
                    right_order_id=right.order_id,
                )
                raise

            attempts = self._apply_with_retry(plan, left, right)

            self.fill_tracker.record_fill(left, plan.amounts.amount_bought_by_left_maker)
            self.fill_tracker.record_fill(right, plan.amounts.amount_bought_by_right_maker)

            result = SettlementResult(
                settlement_id=uuid4(),
                plan=plan,
                left_order_id=left.order_id,
                right_order_id=right.order_id,
                taker=taker,
                attempts=attempts,
            )

            self._record_stat("matches_settled")
            self._record_stat("transfers_applied", len(plan))

            latency_ms = (time.time() - start_time) * 1000
            self._latencies.append(latency_ms)
            self.logger.log_settlement(
                result.settlement_id,
                left.order_id,
                right.order_id,
                len(plan),
                result.spread,
                attempts,
                execution_time_ms=latency_ms,
            )

        self._notify_settlement(result)
        return result

    def plan_match(
        self,
        left: Order,
        right: Order,
        taker: str,
        left_fill_amount: Optional[int] = None,
    ) -> SettlementPlan:
        """
        Compute the plan a match would apply, without touching the ledger.

        Raises the same validation errors as match_orders.
        """
        with self.lock:
            return self._plan(left, right, taker, left_fill_amount)

    def get_filled_amount(self, order: Order) -> int:
        """Taker asset already filled on an order."""
        return self.fill_tracker.get_filled(order)

    def get_remaining_amount(self, order: Order) -> int:
        """Taker asset still fillable on an order."""
        return self.fill_tracker.get_remaining(order)

    def register_settlement_callback(self, callback: Callable[[SettlementResult], None]) -> None:
        """
        Register a callback to be invoked after a settlement is applied.

        Args:
            callback: Function to call with the SettlementResult
        """
        self.settlement_callbacks.append(callback)
        self.logger.info(
            f"Registered settlement callback. Total callbacks: {len(self.settlement_callbacks)}"
        )

    def unregister_settlement_callback(self, callback: Callable[[SettlementResult], None]) -> None:
        """
        Unregister a settlement callback.

        Args:
            callback: Callback function to remove
        """
        if callback in self.settlement_callbacks:
            self.settlement_callbacks.remove(callback)
            self.logger.info(
                f"Unregistered settlement callback. Total callbacks: {len(self.settlement_callbacks)}"
            )

    def get_statistics(self) -> Dict[str, float]:
        """
        Get current service statistics.

        Returns:
            Dictionary of statistics
        """
        with self.lock:
            stats = dict(self.statistics)

            if self._latencies:
                stats["avg_latency_ms"] = sum(self._latencies) / len(self._latencies)
                stats["max_latency_ms"] = max(self._latencies)
                stats["min_latency_ms"] = min(self._latencies)

            return stats

    # Private helpers

    def _plan(
        self,
        left: Order,
        right: Order,
        taker: str,
        left_fill_amount: Optional[int],
    ) -> SettlementPlan:
        validate_identity(taker, name="taker")
        ensure_crossable(left, right)

        bound = max_fill_amount(
            left,
            right,
            left_filled=self.fill_tracker.get_filled(left),
            right_filled=self.fill_tracker.get_filled(right),
        )
        if bound == 0:
            raise NoFillableAmountException(
                "No fillable amount left on one of the orders",
                details={"left_order_id": str(left.order_id), "right_order_id": str(right.order_id)},
            )

        if left_fill_amount is None:
            fill = bound
        elif not isinstance(left_fill_amount, int) or isinstance(left_fill_amount, bool):
            raise InvalidFillAmountException(
                f"Fill amount must be an integer, got {left_fill_amount!r}",
                details={"requested": repr(left_fill_amount)},
            )
        elif left_fill_amount > bound:
            raise InvalidFillAmountException(
                f"Requested fill {left_fill_amount} exceeds fillable amount {bound}",
                details={"requested": str(left_fill_amount), "fillable": str(bound)},
            )
        else:
            fill = left_fill_amount

        self.logger.log_match_attempt(left.order_id, right.order_id, taker, fill)

        if self.settings.reject_rounding_errors:
            self._check_rounding(left, right, fill)

        return compute_settlement(left, right, fill, taker, self.settings.fee_asset)

    def _check_rounding(self, left: Order, right: Order, fill: int) -> None:
        tolerance = self.settings.rounding_error_tolerance_bps
        if is_rounding_error(left.maker_asset_amount, left.taker_asset_amount, fill, tolerance) or \
                is_rounding_error(right.taker_asset_amount, right.maker_asset_amount, fill, tolerance):
            raise RoundingErrorException(
                f"Fill {fill} truncates by more than {tolerance} bps",
                details={"fill": str(fill), "tolerance_bps": tolerance},
            )

    def _apply_with_retry(self, plan: SettlementPlan, left: Order, right: Order) -> int:
        """Apply the plan, retrying transient ledger failures. Returns the attempt count."""
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.ledger_max_attempts),
            wait=wait_exponential(
                multiplier=self.settings.ledger_retry_min_wait,
                min=self.settings.ledger_retry_min_wait,
                max=self.settings.ledger_retry_max_wait,
            ),
            retry=retry_if_exception_type(LedgerUnavailableException),
            before_sleep=self._before_retry,
            reraise=True,
        )

        attempts = 0
        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    self.ledger.apply(plan)
        except LedgerException as e:
            self._record_stat("settlements_failed")
            self.logger.log_error(
                f"Ledger rejected settlement of {left.order_id} against {right.order_id} "
                f"after {attempts} attempt(s)",
                e,
                left_order_id=left.order_id,
                right_order_id=right.order_id,
                attempt=attempts,
            )
            raise SettlementFailedException(
                f"Failed to apply settlement: {e.message}",
                plan=plan,
                attempts=attempts,
                details={"left_order_id": str(left.order_id), "right_order_id": str(right.order_id)},
            ) from e

        return attempts

    def _before_retry(self, retry_state: RetryCallState) -> None:
        self._record_stat("ledger_retries")
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        self.logger.log_retry(retry_state.attempt_number, str(exception))

    def _record_stat(self, name: str, amount: int = 1) -> None:
        if self.settings.enable_metrics:
            self.statistics[name] += amount

    def _notify_settlement(self, result: SettlementResult) -> None:
        """Notify registered callbacks of an applied settlement."""
        for callback in self.settlement_callbacks:
            try:
                callback(result)
            except Exception as e:
                self.logger.log_error("Error in settlement callback", e)

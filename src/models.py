import threading
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

from money import ZERO, add, subtract

MAX_CLIENT_ID = 0xFFFF
MAX_TRANSACTION_ID = 0xFFFFFFFF


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def is_funding(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeState(Enum):
    NONE = "none"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class RejectReason(Enum):
    ACCOUNT_LOCKED = "account_locked"
    INVALID_AMOUNT = "invalid_amount"
    AMOUNT_OVERFLOW = "amount_overflow"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    CLIENT_MISMATCH = "client_mismatch"
    NOT_DISPUTABLE = "not_disputable"
    INVALID_DISPUTE_STATE = "invalid_dispute_state"


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of applying one record. A reason is set only on rejection."""

    reason: Optional[RejectReason] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def rejected(cls, reason: RejectReason) -> "ProcessingResult":
        return cls(reason=reason)


ProcessingResult.SUCCESS = ProcessingResult()


@dataclass(frozen=True)
class TransactionRecord:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if not 0 <= self.client_id <= MAX_CLIENT_ID:
            raise ValueError(f"client id out of range: {self.client_id}")
        if not 0 <= self.transaction_id <= MAX_TRANSACTION_ID:
            raise ValueError(f"transaction id out of range: {self.transaction_id}")
        if self.transaction_type.is_funding and self.amount is None:
            raise ValueError(f"{self.transaction_type.value} requires an amount")
        if not self.transaction_type.is_funding and self.amount is not None:
            raise ValueError(f"{self.transaction_type.value} must not carry an amount")

    def __repr__(self) -> str:
        return f"TransactionRecord({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class LedgerEntry:
    """An applied deposit or withdrawal. Only dispute_state changes after creation."""

    client_id: int
    transaction_type: TransactionType
    amount: Decimal
    dispute_state: DisputeState = DisputeState.NONE


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    # Balance changes raise AmountOverflowError and leave the account untouched
    # when a result would need rounding or exceed MAX_AMOUNT.

    def credit(self, amount: Decimal) -> None:
        self._set_balances(add(self.available, amount), self.held)

    def debit(self, amount: Decimal) -> None:
        self._set_balances(subtract(self.available, amount), self.held)

    def hold(self, amount: Decimal) -> None:
        self._set_balances(subtract(self.available, amount), add(self.held, amount))

    def release_hold(self, amount: Decimal) -> None:
        self._set_balances(add(self.available, amount), subtract(self.held, amount))

    def remove_held(self, amount: Decimal) -> None:
        self._set_balances(self.available, subtract(self.held, amount))

    def _set_balances(self, available: Decimal, held: Decimal) -> None:
        # total must stay representable too
        add(available, held)
        self.available = available
        self.held = held

    def lock(self) -> None:
        self.locked = True


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.applied = 0
        self.rejected = 0
        self.decode_errors = 0
        self._reasons: Counter = Counter()

    def record_result(self, result: ProcessingResult):
        with self._lock:
            if result.ok:
                self.applied += 1
            else:
                self.rejected += 1
                self._reasons[result.reason] += 1

    def record_decode_error(self):
        with self._lock:
            self.decode_errors += 1

    def rejections_by_reason(self) -> Dict[RejectReason, int]:
        with self._lock:
            return dict(self._reasons)

import logging
from decimal import Decimal
from typing import Callable, Optional, Tuple

from account_book import AccountBook
from ledger import LedgerIndex
from models import (
    ClientAccount,
    DisputeState,
    LedgerEntry,
    ProcessingResult,
    RejectReason,
    TransactionRecord,
    TransactionType,
)
from money import AmountOverflowError, has_valid_precision, within_limit

logger = logging.getLogger(__name__)


class TransactionEngine:
    """
    Applies transaction records to a ledger and an account book.
    Records must be applied in input order. Every rejection is returned
    as a ProcessingResult and leaves all state untouched.
    Not thread-safe: one engine per thread.
    """

    def __init__(
        self,
        ledger: Optional[LedgerIndex] = None,
        accounts: Optional[AccountBook] = None,
        allow_withdrawal_disputes: bool = True,
    ):
        self._ledger = ledger if ledger is not None else LedgerIndex()
        self._accounts = accounts if accounts is not None else AccountBook()
        self._allow_withdrawal_disputes = allow_withdrawal_disputes

    @property
    def ledger(self) -> LedgerIndex:
        return self._ledger

    @property
    def accounts(self) -> AccountBook:
        return self._accounts

    def apply(self, record: TransactionRecord) -> ProcessingResult:
        """
        Apply a single record.

        Returns:
            ProcessingResult.SUCCESS when balances or dispute state changed,
            otherwise a rejected result carrying the RejectReason.
        """
        account = self._accounts.get_or_create(record.client_id)

        if account.locked:
            return self._reject(record, RejectReason.ACCOUNT_LOCKED)

        match record.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, record)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, record)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, record)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, record)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, record)

        raise ValueError(f"unknown transaction type: {record.transaction_type!r}")

    def _handle_deposit(self, account: ClientAccount, record: TransactionRecord) -> ProcessingResult:
        reason = self._check_funding(record)
        if reason is not None:
            return self._reject(record, reason)

        if not self._adjust_balances(record, account.credit, record.amount):
            return self._reject(record, RejectReason.AMOUNT_OVERFLOW)
        self._record_entry(record)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, account: ClientAccount, record: TransactionRecord) -> ProcessingResult:
        reason = self._check_funding(record)
        if reason is not None:
            return self._reject(record, reason)

        if account.available < record.amount:
            return self._reject(record, RejectReason.INSUFFICIENT_FUNDS)

        if not self._adjust_balances(record, account.debit, record.amount):
            return self._reject(record, RejectReason.AMOUNT_OVERFLOW)
        self._record_entry(record)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, record: TransactionRecord) -> ProcessingResult:
        entry, reason = self._find_entry(record)
        if reason is not None:
            return self._reject(record, reason)

        if entry.transaction_type == TransactionType.WITHDRAWAL and not self._allow_withdrawal_disputes:
            return self._reject(record, RejectReason.NOT_DISPUTABLE)

        if entry.dispute_state != DisputeState.NONE:
            return self._reject(record, RejectReason.INVALID_DISPUTE_STATE)

        # available may go negative when the disputed funds were already spent
        if not self._adjust_balances(record, account.hold, entry.amount):
            return self._reject(record, RejectReason.AMOUNT_OVERFLOW)
        entry.dispute_state = DisputeState.DISPUTED
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, account: ClientAccount, record: TransactionRecord) -> ProcessingResult:
        entry, reason = self._find_entry(record)
        if reason is not None:
            return self._reject(record, reason)

        if entry.dispute_state != DisputeState.DISPUTED:
            return self._reject(record, RejectReason.INVALID_DISPUTE_STATE)

        if not self._adjust_balances(record, account.release_hold, entry.amount):
            return self._reject(record, RejectReason.AMOUNT_OVERFLOW)
        entry.dispute_state = DisputeState.RESOLVED
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, account: ClientAccount, record: TransactionRecord) -> ProcessingResult:
        entry, reason = self._find_entry(record)
        if reason is not None:
            return self._reject(record, reason)

        if entry.dispute_state != DisputeState.DISPUTED:
            return self._reject(record, RejectReason.INVALID_DISPUTE_STATE)

        if not self._adjust_balances(record, account.remove_held, entry.amount):
            return self._reject(record, RejectReason.AMOUNT_OVERFLOW)
        account.lock()
        entry.dispute_state = DisputeState.CHARGED_BACK
        logger.info(f"Chargeback tx {record.transaction_id}: client {record.client_id} locked")
        return ProcessingResult.SUCCESS

    def _check_funding(self, record: TransactionRecord) -> Optional[RejectReason]:
        amount = record.amount
        if amount is None or not has_valid_precision(amount) or not within_limit(amount) or amount <= 0:
            return RejectReason.INVALID_AMOUNT
        if record.transaction_id in self._ledger:
            return RejectReason.DUPLICATE_TRANSACTION
        return None

    def _adjust_balances(self, record: TransactionRecord, change: Callable[[Decimal], None], amount: Decimal) -> bool:
        try:
            change(amount)
        except AmountOverflowError as e:
            logger.warning(f"Tx {record.transaction_id} for client {record.client_id}: {e}")
            return False
        return True

    def _find_entry(self, record: TransactionRecord) -> Tuple[Optional[LedgerEntry], Optional[RejectReason]]:
        entry = self._ledger.get(record.transaction_id)
        if entry is None:
            return None, RejectReason.TRANSACTION_NOT_FOUND
        if entry.client_id != record.client_id:
            return None, RejectReason.CLIENT_MISMATCH
        return entry, None

    def _record_entry(self, record: TransactionRecord) -> None:
        self._ledger.record(
            record.transaction_id,
            LedgerEntry(
                client_id=record.client_id,
                transaction_type=record.transaction_type,
                amount=record.amount,
            ),
        )

    def _reject(self, record: TransactionRecord, reason: RejectReason) -> ProcessingResult:
        logger.debug(f"Rejected {record}: {reason.value}")
        return ProcessingResult.rejected(reason)

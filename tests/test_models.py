import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import (
    ClientAccount,
    ProcessingResult,
    ProcessingStats,
    RejectReason,
    TransactionRecord,
    TransactionType,
)


class TestTransactionRecord:
    def test_create_deposit(self):
        record = TransactionRecord(
            transaction_type=TransactionType.DEPOSIT,
            client_id=1,
            transaction_id=1,
            amount=Decimal("100.0"),
        )
        assert record.transaction_type == TransactionType.DEPOSIT
        assert record.client_id == 1
        assert record.transaction_id == 1
        assert record.amount == Decimal("100.0")

    def test_create_dispute_no_amount(self):
        record = TransactionRecord(
            transaction_type=TransactionType.DISPUTE,
            client_id=1,
            transaction_id=1,
        )
        assert record.amount is None

    def test_funding_requires_amount(self):
        with pytest.raises(ValueError):
            TransactionRecord(TransactionType.WITHDRAWAL, client_id=1, transaction_id=1)

    def test_dispute_lifecycle_rejects_amount(self):
        with pytest.raises(ValueError):
            TransactionRecord(TransactionType.CHARGEBACK, client_id=1, transaction_id=1, amount=Decimal("1"))

    @pytest.mark.parametrize("client_id, transaction_id", [(-1, 1), (65536, 1), (1, -1), (1, 4294967296)])
    def test_ids_out_of_range(self, client_id, transaction_id):
        with pytest.raises(ValueError):
            TransactionRecord(TransactionType.DISPUTE, client_id=client_id, transaction_id=transaction_id)

    def test_id_bounds_accepted(self):
        record = TransactionRecord(TransactionType.RESOLVE, client_id=65535, transaction_id=4294967295)
        assert record.client_id == 65535

    def test_immutable(self):
        record = TransactionRecord(TransactionType.DISPUTE, client_id=1, transaction_id=1)
        with pytest.raises(AttributeError):
            record.client_id = 2


class TestClientAccount:
    def test_default_values(self):
        account = ClientAccount(client_id=1)
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.total == Decimal("0")
        assert account.locked is False

    def test_total_property(self):
        account = ClientAccount(
            client_id=1,
            available=Decimal("100"),
            held=Decimal("50"),
        )
        assert account.total == Decimal("150")

    def test_hold_keeps_total(self):
        account = ClientAccount(client_id=1, available=Decimal("10"))
        account.hold(Decimal("25"))
        assert account.available == Decimal("-15")
        assert account.held == Decimal("25")
        assert account.total == Decimal("10")

    def test_remove_held_reduces_total(self):
        account = ClientAccount(client_id=1, available=Decimal("5"), held=Decimal("10"))
        account.remove_held(Decimal("10"))
        assert account.total == Decimal("5")

    def test_lock(self):
        account = ClientAccount(client_id=1)
        account.lock()
        assert account.locked is True


class TestProcessingResult:
    def test_success(self):
        assert ProcessingResult.SUCCESS.ok
        assert ProcessingResult.SUCCESS.reason is None

    def test_rejected(self):
        result = ProcessingResult.rejected(RejectReason.INSUFFICIENT_FUNDS)
        assert not result.ok
        assert result.reason == RejectReason.INSUFFICIENT_FUNDS


class TestProcessingStats:
    def test_counts(self):
        stats = ProcessingStats()
        stats.record_result(ProcessingResult.SUCCESS)
        stats.record_result(ProcessingResult.rejected(RejectReason.ACCOUNT_LOCKED))
        stats.record_result(ProcessingResult.rejected(RejectReason.ACCOUNT_LOCKED))
        stats.record_decode_error()

        assert stats.applied == 1
        assert stats.rejected == 2
        assert stats.decode_errors == 1
        assert stats.rejections_by_reason() == {RejectReason.ACCOUNT_LOCKED: 2}

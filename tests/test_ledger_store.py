import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import DuplicateTransaction, TransactionNotFound
from ledger_store import LedgerStore
from models import DisputeState, TransactionType


class TestLedgerStore:
    def setup_method(self):
        self.store = LedgerStore()

    def test_get_or_create_account_creates_once(self):
        account = self.store.get_or_create_account(5)
        assert account.client_id == 5
        assert account.available == Decimal("0")
        assert account.locked is False

        assert self.store.get_or_create_account(5) is account
        assert self.store.account_count == 1

    def test_get_account_does_not_create(self):
        assert self.store.get_account(9) is None
        assert self.store.account_count == 0

    def test_record_and_lookup(self):
        stored = self.store.record_transaction(10, 1, TransactionType.DEPOSIT, Decimal("2.5"))

        found = self.store.lookup_transaction(10)
        assert found is stored
        assert found.client_id == 1
        assert found.amount == Decimal("2.5")
        assert found.dispute_state == DisputeState.NONE
        assert self.store.has_transaction(10)
        assert self.store.transaction_count == 1

    def test_record_duplicate_rejected(self):
        self.store.record_transaction(10, 1, TransactionType.DEPOSIT, Decimal("2.5"))

        with pytest.raises(DuplicateTransaction) as exc_info:
            self.store.record_transaction(10, 2, TransactionType.WITHDRAWAL, Decimal("1"))

        assert exc_info.value.transaction_id == 10
        assert self.store.transaction_count == 1
        assert self.store.lookup_transaction(10).client_id == 1

    def test_lookup_missing(self):
        with pytest.raises(TransactionNotFound):
            self.store.lookup_transaction(404)

    def test_snapshot_keeps_first_seen_order(self):
        for client_id in (3, 1, 2, 1):
            self.store.get_or_create_account(client_id)

        assert [a.client_id for a in self.store.snapshot()] == [3, 1, 2]

    def test_snapshot_is_a_copy(self):
        self.store.get_or_create_account(1).credit(Decimal("5"))
        snapshot = self.store.snapshot()

        self.store.get_or_create_account(1).credit(Decimal("5"))

        assert snapshot[0].available == Decimal("5")
        assert self.store.get_account(1).available == Decimal("10")

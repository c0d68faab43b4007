import logging
from typing import Iterable, List, Optional, TextIO

from csv_io import read_transactions
from errors import TransactionError
from ledger_store import LedgerStore
from models import ClientAccount, ProcessingStats, Transaction
from transaction_engine import TransactionEngine

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Drives transactions through the TransactionEngine strictly in input order.
    Rejected transactions are reported and skipped; they never stop the run.
    """

    def __init__(self, store: Optional[LedgerStore] = None):
        self._store = store if store is not None else LedgerStore()
        self._engine = TransactionEngine(self._store)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def store(self) -> LedgerStore:
        return self._store

    def process_file(self, filepath: str) -> List[ClientAccount]:
        """Process CSV file and return final account states."""
        with open(filepath, "r", newline="", encoding="utf-8-sig") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> List[ClientAccount]:
        transactions = read_transactions(stream, on_skip=lambda _: self._stats.record_skipped_row())
        return self.process(transactions)

    def process(self, transactions: Iterable[Transaction]) -> List[ClientAccount]:
        logger.info("Starting processing")

        for transaction in transactions:
            self.apply(transaction)

        logger.info(
            f"Processing complete. Processed: {self._stats.processed}, "
            f"Failed: {self._stats.failed}, "
            f"Skipped rows: {self._stats.skipped_rows}, "
            f"Clients: {self._store.account_count}, "
            f"Stored transactions: {self._store.transaction_count}"
        )

        return self._store.snapshot()

    def apply(self, transaction: Transaction) -> bool:
        """Apply one transaction. Returns False if it was rejected."""
        try:
            self._engine.process_transaction(transaction)
        except TransactionError as e:
            self._stats.record_failure(type(e).__name__)
            logger.warning(f"Rejected {e}")
            return False

        self._stats.record_success()
        return True

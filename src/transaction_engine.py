import logging

from errors import (
    AccountLocked,
    ClientMismatch,
    DuplicateTransaction,
    InsufficientFunds,
    InvalidAmount,
    InvalidDisputeState,
    TransactionNotFound,
)
from ledger_store import LedgerStore
from models import ClientAccount, DisputeState, StoredTransaction, Transaction, TransactionType

logger = logging.getLogger(__name__)


class TransactionEngine:
    """
    Applies transactions to a LedgerStore, one at a time, in the order given.

    Accepted transactions return normally. Rejected ones raise a TransactionError
    subclass and leave balances and transaction history untouched. The client's account
    is created either way. Earlier state is never rolled back.

    Dispute lifecycle of a stored transaction:
        NONE -> DISPUTED -> RESOLVED | CHARGED_BACK
    Both end states are final, so a resolved transaction cannot be disputed again.
    """

    def __init__(self, store: LedgerStore):
        self._store = store

    def process_transaction(self, transaction: Transaction) -> None:
        account = self._store.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                self._handle_chargeback(account, transaction)

        logger.debug(f"Applied {transaction}")

    def _check_new_funds_movement(self, account: ClientAccount, transaction: Transaction) -> None:
        if transaction.amount is None or transaction.amount <= 0:
            raise InvalidAmount(transaction)

        if self._store.has_transaction(transaction.transaction_id):
            raise DuplicateTransaction(transaction, transaction.transaction_id)

        if account.locked:
            raise AccountLocked(transaction)

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> None:
        self._check_new_funds_movement(account, transaction)

        self._record(transaction)
        account.credit(transaction.amount)

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> None:
        self._check_new_funds_movement(account, transaction)

        if account.available < transaction.amount:
            raise InsufficientFunds(transaction, account.available)

        self._record(transaction)
        account.debit(transaction.amount)

    def _record(self, transaction: Transaction) -> StoredTransaction:
        return self._store.record_transaction(
            transaction.transaction_id,
            transaction.client_id,
            transaction.transaction_type,
            transaction.amount,
        )

    def _find_referenced(
        self, account: ClientAccount, transaction: Transaction, expected_state: DisputeState
    ) -> StoredTransaction:
        """Look up the deposit/withdrawal a dispute, resolve or chargeback points at."""
        try:
            original = self._store.lookup_transaction(transaction.transaction_id)
        except TransactionNotFound:
            raise TransactionNotFound(transaction, transaction.transaction_id) from None

        if original.client_id != transaction.client_id:
            raise ClientMismatch(transaction, original.client_id)

        if account.locked:
            raise AccountLocked(transaction)

        if original.dispute_state != expected_state:
            raise InvalidDisputeState(transaction, original.dispute_state)

        return original

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> None:
        original = self._find_referenced(account, transaction, DisputeState.NONE)

        # Disputing a withdrawal or an already spent deposit can push available below zero.
        account.hold(original.amount)
        original.dispute_state = DisputeState.DISPUTED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> None:
        original = self._find_referenced(account, transaction, DisputeState.DISPUTED)

        account.release_hold(original.amount)
        original.dispute_state = DisputeState.RESOLVED

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> None:
        original = self._find_referenced(account, transaction, DisputeState.DISPUTED)

        account.remove_held(original.amount)
        account.locked = True
        original.dispute_state = DisputeState.CHARGED_BACK

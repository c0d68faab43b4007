from decimal import Decimal
from typing import Dict, List, Optional

from errors import DuplicateTransaction, TransactionNotFound
from models import ClientAccount, StoredTransaction, TransactionType


class LedgerStore:
    """
    Client accounts plus the deposit/withdrawal history needed for dispute lookups.
    Stored transactions live in a list; the dict maps transaction id to list position.
    Accounts keep the order in which their client was first seen.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: List[StoredTransaction] = []
        self._transaction_index: Dict[int, int] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create a zero-balance, unlocked one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def record_transaction(
        self,
        transaction_id: int,
        client_id: int,
        transaction_type: TransactionType,
        amount: Decimal,
    ) -> StoredTransaction:
        """
        Store a deposit or withdrawal for future dispute lookups.

        Raises:
            DuplicateTransaction: transaction_id was already recorded. Nothing is stored.
        """
        if transaction_id in self._transaction_index:
            raise DuplicateTransaction(None, transaction_id)

        stored = StoredTransaction(
            transaction_id=transaction_id,
            client_id=client_id,
            transaction_type=transaction_type,
            amount=amount,
        )
        self._transaction_index[transaction_id] = len(self._transactions)
        self._transactions.append(stored)
        return stored

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._transaction_index

    def lookup_transaction(self, transaction_id: int) -> StoredTransaction:
        """
        Retrieve stored transaction by id.

        Raises:
            TransactionNotFound: no deposit or withdrawal with that id was recorded.
        """
        position = self._transaction_index.get(transaction_id)
        if position is None:
            raise TransactionNotFound(None, transaction_id)
        return self._transactions[position]

    def snapshot(self) -> List[ClientAccount]:
        """Copies of all accounts, in first-seen client order (for final output)."""
        return [account.copy() for account in self._accounts.values()]

    @property
    def account_count(self) -> int:
        return len(self._accounts)

    @property
    def transaction_count(self) -> int:
        return len(self._transactions)

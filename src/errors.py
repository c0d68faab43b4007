from decimal import Decimal
from typing import Optional

from models import DisputeState, Transaction


class PaymentsError(Exception):
    """Base class for everything the payments engine raises on purpose."""


class TransactionError(PaymentsError):
    """
    A single transaction was rejected.
    Recoverable: the caller reports it and moves on to the next transaction.
    """

    def __init__(self, transaction: Optional[Transaction], message: str):
        super().__init__(message)
        self.transaction = transaction

    def __str__(self) -> str:
        message = super().__str__()
        if self.transaction is None:
            return message
        return f"{self.transaction.transaction_type.value} tx {self.transaction.transaction_id} (client {self.transaction.client_id}): {message}"


class InvalidAmount(TransactionError):
    def __init__(self, transaction: Transaction):
        super().__init__(transaction, f"invalid amount {transaction.amount}")


class AccountLocked(TransactionError):
    def __init__(self, transaction: Transaction):
        super().__init__(transaction, "account is locked")


class InsufficientFunds(TransactionError):
    def __init__(self, transaction: Transaction, available: Decimal):
        super().__init__(transaction, f"insufficient funds (available {available}, requested {transaction.amount})")
        self.available = available


class DuplicateTransaction(TransactionError):
    def __init__(self, transaction: Optional[Transaction], transaction_id: int):
        super().__init__(transaction, f"transaction id {transaction_id} already exists")
        self.transaction_id = transaction_id


class TransactionNotFound(TransactionError):
    def __init__(self, transaction: Optional[Transaction], transaction_id: int):
        super().__init__(transaction, f"referenced transaction {transaction_id} not found")
        self.transaction_id = transaction_id


class ClientMismatch(TransactionError):
    def __init__(self, transaction: Transaction, expected_client_id: int):
        super().__init__(
            transaction,
            f"client mismatch (transaction belongs to client {expected_client_id}, got {transaction.client_id})",
        )
        self.expected_client_id = expected_client_id


class InvalidDisputeState(TransactionError):
    def __init__(self, transaction: Transaction, state: DisputeState):
        super().__init__(transaction, f"referenced transaction is {state.value}")
        self.state = state


class RecordParseError(PaymentsError):
    """One input row could not be turned into a Transaction."""


class MalformedInputError(PaymentsError):
    """The input stream itself is unusable. Fatal for the whole run."""

"""
Ledger error taxonomy.

Every error here is a recoverable, caller-facing condition.
They derive from ValueError so API routes can keep catching
ValueError the way they do for validation problems.
"""


class LedgerError(ValueError):
    """Base class for all ledger errors."""


class NotFoundError(LedgerError):
    """A referenced entity does not exist."""


class AccountNotFound(NotFoundError):
    def __init__(self, account_id):
        super().__init__(f"Account {account_id} not found")
        self.account_id = account_id


class TransactionNotFound(NotFoundError):
    def __init__(self, transaction_id):
        super().__init__(f"Transaction {transaction_id} not found")
        self.transaction_id = transaction_id


class SavingNotFound(NotFoundError):
    def __init__(self, saving_id):
        super().__init__(f"Locked saving {saving_id} not found")
        self.saving_id = saving_id


class InsufficientFunds(LedgerError):
    def __init__(self, account_id, available, requested):
        super().__init__(
            f"Insufficient balance on account {account_id}: "
            f"available={available}, requested={requested}"
        )
        self.account_id = account_id
        self.available = available
        self.requested = requested


class AlreadyWithdrawn(LedgerError):
    def __init__(self, saving_id):
        super().__init__(f"Locked saving {saving_id} was already withdrawn")
        self.saving_id = saving_id


class InvalidState(LedgerError):
    """An operation is not allowed in the entity's current state."""


class ActiveLockedSavingsExist(LedgerError):
    def __init__(self, account_id, count):
        super().__init__(
            f"Account {account_id} has {count} active locked saving(s); "
            f"withdraw them before removing the account"
        )
        self.account_id = account_id
        self.count = count

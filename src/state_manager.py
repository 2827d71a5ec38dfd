from decimal import Decimal
from typing import Dict, Optional

from ledger_models import ClientAccount, DepositRecord


class StateManager:
    """
    Account state for a single engine run.
    Owned by exactly one writer, so nothing here is locked.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create a zeroed one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def store_deposit(self, account: ClientAccount, transaction_id: int, amount: Decimal) -> None:
        """Store deposit for future dispute lookups. A reused id overwrites the old record."""
        account.deposits[transaction_id] = DepositRecord(amount=amount)

    def get_deposit(self, account: ClientAccount, transaction_id: int) -> Optional[DepositRecord]:
        return account.deposits.get(transaction_id)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)

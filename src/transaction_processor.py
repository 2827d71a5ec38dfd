import logging

from ledger_models import Transaction, TransactionType, ClientAccount, ProcessingResult
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to account state.
    Returns ProcessingResult so callers can tell applied events from dropped ones.
    Never raises on a bad event: every failed precondition is a no-op.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: the event changed the account
            IGNORED: the event was dropped (locked account, bad amount, unknown
                or wrongly-stated dispute target, insufficient funds)
        """
        account = self._state.get_or_create_account(transaction.client_id)

        if account.locked:
            logger.debug(f"Client {transaction.client_id} is locked, ignoring {transaction}")
            return ProcessingResult.IGNORED

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        if transaction.amount is None or transaction.amount < 0:
            logger.debug(f"Deposit tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.IGNORED

        account.credit(transaction.amount)
        self._state.store_deposit(account, transaction.transaction_id, transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        if transaction.amount is None or transaction.amount < 0:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.IGNORED

        if account.available < transaction.amount:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: insufficient funds ({account.available} < {transaction.amount})")
            return ProcessingResult.IGNORED

        account.debit(transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        deposit = self._state.get_deposit(account, transaction.transaction_id)

        if deposit is None:
            logger.debug(f"Dispute for tx {transaction.transaction_id}: no deposit with that id for client {account.client_id}")
            return ProcessingResult.IGNORED

        if deposit.disputed:
            logger.debug(f"Dispute for tx {transaction.transaction_id}: already disputed")
            return ProcessingResult.IGNORED

        account.hold(deposit.amount)
        deposit.disputed = True
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        deposit = self._state.get_deposit(account, transaction.transaction_id)

        if deposit is None or not deposit.disputed:
            logger.debug(f"Resolve for tx {transaction.transaction_id}: no open dispute")
            return ProcessingResult.IGNORED

        account.release_hold(deposit.amount)
        deposit.disputed = False
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        deposit = self._state.get_deposit(account, transaction.transaction_id)

        if deposit is None or not deposit.disputed:
            logger.debug(f"Chargeback for tx {transaction.transaction_id}: no open dispute")
            return ProcessingResult.IGNORED

        # available was already reduced when the dispute opened
        account.remove_held(deposit.amount)
        account.locked = True
        deposit.disputed = False
        return ProcessingResult.SUCCESS

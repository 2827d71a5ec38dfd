import logging
import threading
from typing import Dict, Iterable, List, Optional

from ledger_models import Transaction, ClientAccount
from message_queue import InMemoryQueue
from state_manager import StateManager
from transaction_processor import TransactionProcessor
from csv_io import read_transactions

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Folds an ordered transaction stream into final account states.
    Single pass, strict input order, one StateManager per run.
    """

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply every transaction in order and return the resulting accounts."""
        state = StateManager()
        processor = TransactionProcessor(state)

        for transaction in transactions:
            processor.process_transaction(transaction)

        logger.info(f"Processed transactions for {len(state)} clients")
        return state.get_all_accounts()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        return self.process_transactions(read_transactions(filepath))


class ShardedPaymentsEngine(PaymentsEngine):
    """
    Partitions the stream by client id with publisher-consumer pattern.
    Each shard has its own queue, worker thread and state, so per-client
    order is preserved and no account is ever shared between threads.
    """

    def __init__(self, num_shards: int = 4):
        if num_shards < 1:
            raise ValueError(f"num_shards must be at least 1, got {num_shards}")
        self._num_shards = num_shards

    @property
    def num_shards(self) -> int:
        return self._num_shards

    def shard_for(self, client_id: int) -> int:
        return client_id % self._num_shards

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        queues = [InMemoryQueue() for _ in range(self._num_shards)]
        results: List[Dict[int, ClientAccount]] = [{} for _ in range(self._num_shards)]
        errors: List[Optional[Exception]] = [None] * self._num_shards

        logger.info(f"Starting {self._num_shards} shard workers")

        workers = []
        for shard, queue in enumerate(queues):
            worker = threading.Thread(
                target=self._consume_shard,
                args=(queue, results, errors, shard),
                name=f"ledger-shard-{shard}",
            )
            worker.start()
            workers.append(worker)

        try:
            self._publish_transactions(transactions, queues)
        finally:
            # Workers must be released even if the source fails mid-stream.
            for queue in queues:
                queue.shutdown()
            for worker in workers:
                worker.join()

        for error in errors:
            if error is not None:
                raise error

        logger.info("All shard workers complete, merging results")

        accounts: Dict[int, ClientAccount] = {}
        for shard_accounts in results:
            accounts.update(shard_accounts)
        return accounts

    def _publish_transactions(self, transactions: Iterable[Transaction], queues: List[InMemoryQueue]) -> None:
        """Route each transaction to the queue of its client's shard."""
        for transaction in transactions:
            queues[self.shard_for(transaction.client_id)].publish_message(transaction)

    def _consume_shard(
        self,
        queue: InMemoryQueue,
        results: List[Dict[int, ClientAccount]],
        errors: List[Optional[Exception]],
        shard: int,
    ) -> None:
        """Consumer loop: fold one shard's messages until shutdown, keeping any failure for the caller."""
        try:
            results[shard] = super().process_transactions(queue.messages())
        except Exception as e:
            logger.error(f"Shard {shard} worker failed: {e!r}")
            errors[shard] = e

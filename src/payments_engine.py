import logging
import threading
from typing import Dict, Iterable, List

from csv_reader import read_transactions
from message_queue import InMemoryQueue
from models import ClientAccount, ProcessingStats, TransactionRecord
from transaction_engine import TransactionEngine

logger = logging.getLogger(__name__)


class _Shard:
    """A queue plus the engine that exclusively owns the shard's ledger and accounts."""

    def __init__(self, allow_withdrawal_disputes: bool):
        self.queue = InMemoryQueue()
        self.engine = TransactionEngine(allow_withdrawal_disputes=allow_withdrawal_disputes)


class PaymentsEngine:
    """
    Orchestrates transaction processing with publisher-consumer pattern.
    Records are sharded by client id; each shard applies its records in
    arrival order, so per-client ordering matches the input.
    """

    def __init__(self, num_workers: int = 1, allow_withdrawal_disputes: bool = True):
        if num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {num_workers}")
        self._num_workers = num_workers
        self._shards = [_Shard(allow_withdrawal_disputes) for _ in range(num_workers)]
        self._client_order: Dict[int, int] = {}
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> List[ClientAccount]:
        """Process CSV file and return final account states in first-seen order."""
        return self.process_records(read_transactions(filepath, stats=self._stats))

    def process_records(self, records: Iterable[TransactionRecord]) -> List[ClientAccount]:
        """Apply records in order and return final account states in first-seen order."""
        logger.info(f"Starting processing with {self._num_workers} worker(s)")

        if self._num_workers == 1:
            engine = self._shards[0].engine
            for record in records:
                self._stats.record_result(engine.apply(record))
        else:
            self._process_sharded(records)

        logger.info(
            f"Processing complete. Applied: {self._stats.applied}, "
            f"Rejected: {self._stats.rejected}, "
            f"Decode errors: {self._stats.decode_errors}"
        )
        return self._collect_accounts()

    def _process_sharded(self, records: Iterable[TransactionRecord]) -> None:
        # Phase 1: 1 publisher (this thread), 1 consumer thread per shard
        consumer_threads = []
        for shard in self._shards:
            consumer_thread = threading.Thread(target=self._consume_transactions, args=(shard,))
            consumer_thread.start()
            consumer_threads.append(consumer_thread)

        try:
            self._publish_transactions(records)
        finally:
            for shard in self._shards:
                shard.queue.shutdown()
            for consumer_thread in consumer_threads:
                consumer_thread.join()

    def _publish_transactions(self, records: Iterable[TransactionRecord]) -> None:
        for record in records:
            self._track_client(record)
            self._shard_for(record.client_id).queue.publish_message(record)

    def _consume_transactions(self, shard: _Shard) -> None:
        """Consumer loop: drain one shard's queue in arrival order."""
        while True:
            record = shard.queue.consume_message()
            if record is None:
                if shard.queue.is_shutdown() and shard.queue.is_empty():
                    break
                continue

            self._stats.record_result(shard.engine.apply(record))

    def _shard_for(self, client_id: int) -> _Shard:
        return self._shards[client_id % self._num_workers]

    def _track_client(self, record: TransactionRecord) -> None:
        if record.client_id not in self._client_order:
            self._client_order[record.client_id] = len(self._client_order)

    def _collect_accounts(self) -> List[ClientAccount]:
        if self._num_workers == 1:
            return self._shards[0].engine.accounts.snapshot()

        accounts = [account for shard in self._shards for account in shard.engine.accounts.snapshot()]
        accounts.sort(key=lambda account: self._client_order[account.client_id])
        return accounts

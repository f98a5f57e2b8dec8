from typing import Dict, Optional

from models import LedgerEntry


class LedgerIndex:
    """
    Applied deposits and withdrawals keyed by transaction id.
    Entries are never removed so late or repeated dispute references can be checked.
    """

    def __init__(self):
        self._entries: Dict[int, LedgerEntry] = {}

    def get(self, transaction_id: int) -> Optional[LedgerEntry]:
        return self._entries.get(transaction_id)

    def record(self, transaction_id: int, entry: LedgerEntry) -> None:
        """Store a new entry. Transaction ids are write-once."""
        if transaction_id in self._entries:
            raise KeyError(f"transaction {transaction_id} already recorded")
        self._entries[transaction_id] = entry

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

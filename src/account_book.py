from typing import Dict, List, Optional

from models import ClientAccount


class AccountBook:
    """
    Client accounts keyed by client id, created on first reference.
    Iteration and snapshots follow first-seen order.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_or_create(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def get(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def snapshot(self) -> List[ClientAccount]:
        """Return all accounts (for final output)."""
        return list(self._accounts.values())

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

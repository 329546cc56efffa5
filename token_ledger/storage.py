from typing import Protocol

from .models import NULL_ACCOUNT


class LedgerStorage(Protocol):
    """Key-value mappings the ledger reads and writes.

    Absent balance and supply entries read as 0, absent approvals as False.
    The owner reads as the null account until one is set.
    """

    def get_balance(self, token_id: int, account: str) -> int: ...

    def set_balance(self, token_id: int, account: str, value: int) -> None: ...

    def get_approval(self, owner: str, operator: str) -> bool: ...

    def set_approval(self, owner: str, operator: str, approved: bool) -> None: ...

    def get_supply(self, token_id: int) -> int: ...

    def set_supply(self, token_id: int, value: int) -> None: ...

    def get_owner(self) -> str: ...

    def set_owner(self, owner: str) -> None: ...

    def get_paused(self) -> bool: ...

    def set_paused(self, paused: bool) -> None: ...

    def get_base_uri(self) -> str: ...

    def set_base_uri(self, uri: str) -> None: ...

    def get_next_token_id(self) -> int: ...

    def set_next_token_id(self, token_id: int) -> None: ...


class InMemoryStorage:
    def __init__(self):
        self.balances: dict[tuple[int, str], int] = {}
        self.approvals: dict[tuple[str, str], bool] = {}
        self.supply: dict[int, int] = {}
        self.owner = NULL_ACCOUNT
        self.paused = False
        self.base_uri = ""
        self.next_token_id = 0

    def get_balance(self, token_id: int, account: str) -> int:
        return self.balances.get((token_id, account), 0)

    def set_balance(self, token_id: int, account: str, value: int) -> None:
        self.balances[(token_id, account)] = value

    def get_approval(self, owner: str, operator: str) -> bool:
        return self.approvals.get((owner, operator), False)

    def set_approval(self, owner: str, operator: str, approved: bool) -> None:
        self.approvals[(owner, operator)] = approved

    def get_supply(self, token_id: int) -> int:
        return self.supply.get(token_id, 0)

    def set_supply(self, token_id: int, value: int) -> None:
        self.supply[token_id] = value

    def get_owner(self) -> str:
        return self.owner

    def set_owner(self, owner: str) -> None:
        self.owner = owner

    def get_paused(self) -> bool:
        return self.paused

    def set_paused(self, paused: bool) -> None:
        self.paused = paused

    def get_base_uri(self) -> str:
        return self.base_uri

    def set_base_uri(self, uri: str) -> None:
        self.base_uri = uri

    def get_next_token_id(self) -> int:
        return self.next_token_id

    def set_next_token_id(self, token_id: int) -> None:
        self.next_token_id = token_id


class WorkingSet:
    """Buffers balance and supply writes on top of a storage backend.

    Reads see earlier buffered writes, so sequential updates within one call
    observe each other. Nothing reaches the backend until ``commit()``.
    """

    def __init__(self, storage: LedgerStorage):
        self.storage = storage
        self._balances: dict[tuple[int, str], int] = {}
        self._supply: dict[int, int] = {}
        self.committed = False

    def get_balance(self, token_id: int, account: str) -> int:
        key = (token_id, account)
        if key in self._balances:
            return self._balances[key]
        return self.storage.get_balance(token_id, account)

    def set_balance(self, token_id: int, account: str, value: int) -> None:
        self._check_open()
        self._balances[(token_id, account)] = value

    def get_supply(self, token_id: int) -> int:
        if token_id in self._supply:
            return self._supply[token_id]
        return self.storage.get_supply(token_id)

    def set_supply(self, token_id: int, value: int) -> None:
        self._check_open()
        self._supply[token_id] = value

    @property
    def pending_writes(self) -> int:
        return len(self._balances) + len(self._supply)

    def commit(self) -> None:
        self._check_open()
        for (token_id, account), value in self._balances.items():
            self.storage.set_balance(token_id, account, value)
        for token_id, value in self._supply.items():
            self.storage.set_supply(token_id, value)
        self.committed = True

    def _check_open(self) -> None:
        if self.committed:
            raise RuntimeError("working set already committed")

import logging
from typing import Optional, Sequence

from .config import LedgerSettings, get_settings
from .events import EventSink, FanOutEventSink, InMemoryEventSink, LoggingEventSink
from .models import (
    MAX_UINT256,
    NULL_ACCOUNT,
    ApprovalForAll,
    BalanceView,
    CallContext,
    LedgerInfo,
    OwnershipTransferred,
    Paused,
    TokenInfo,
    TransferBatch,
    TransferSingle,
    Unpaused,
    URIChanged,
    account_adapter,
    accounts_adapter,
    flag_adapter,
    is_null,
    quantities_adapter,
    quantity_adapter,
    token_id_adapter,
    token_ids_adapter,
    uri_adapter,
)
from .observability import configure_logging
from .storage import InMemoryStorage, LedgerStorage, WorkingSet

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    fields: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        data = {"error": type(self).__name__}
        for name in self.fields:
            data[name] = getattr(self, name)
        return data


class InsufficientBalance(LedgerError):
    fields = ("sender", "balance", "needed", "id")

    def __init__(self, sender: str, balance: int, needed: int, id: int):
        self.sender = sender
        self.balance = balance
        self.needed = needed
        self.id = id
        super().__init__(f"{sender} holds {balance} of token {id}, needs {needed}")


class InvalidReceiver(LedgerError):
    fields = ("receiver",)

    def __init__(self, receiver: str):
        self.receiver = receiver
        super().__init__(f"Invalid receiver {receiver}")


class InvalidSender(LedgerError):
    fields = ("sender",)

    def __init__(self, sender: str):
        self.sender = sender
        super().__init__(f"Invalid sender {sender}")


class InvalidApprover(LedgerError):
    """Reserved: no ledger operation currently raises it."""

    fields = ("approver",)

    def __init__(self, approver: str):
        self.approver = approver
        super().__init__(f"Invalid approver {approver}")


class InvalidOperator(LedgerError):
    fields = ("operator",)

    def __init__(self, operator: str):
        self.operator = operator
        super().__init__(f"Invalid operator {operator}")


class InvalidArrayLength(LedgerError):
    fields = ("ids_length", "values_length")

    def __init__(self, ids_length: int, values_length: int):
        self.ids_length = ids_length
        self.values_length = values_length
        super().__init__(f"Array length mismatch: {ids_length} ids, {values_length} values")


class MissingApprovalForAll(LedgerError):
    fields = ("operator", "owner")

    def __init__(self, operator: str, owner: str):
        self.operator = operator
        self.owner = owner
        super().__init__(f"{operator} is not approved to transfer for {owner}")


class BalanceOverflow(LedgerError):
    fields = ("account", "balance", "added", "id")

    def __init__(self, account: str, balance: int, added: int, id: int):
        self.account = account
        self.balance = balance
        self.added = added
        self.id = id
        super().__init__(f"Adding {added} to {balance} of token {id} for {account} overflows uint256")


class NotOwner(LedgerError):
    fields = ("account",)

    def __init__(self, account: str):
        self.account = account
        super().__init__(f"{account} is not the ledger owner")


class InvalidOwner(LedgerError):
    fields = ("owner",)

    def __init__(self, owner: str):
        self.owner = owner
        super().__init__(f"Invalid owner {owner}")


class LedgerPaused(LedgerError):
    def __init__(self):
        super().__init__("Ledger is paused")


class LedgerNotPaused(LedgerError):
    def __init__(self):
        super().__init__("Ledger is not paused")


def _reject(error: LedgerError) -> LedgerError:
    logger.debug(
        "rejected: %s",
        error,
        extra={"error_code": type(error).__name__, "token_id": getattr(error, "id", None)},
    )
    return error


class LedgerService:
    """Multi-token balances plus operator approvals.

    Mutating calls take a ``CallContext`` naming the caller. A call either
    commits all of its writes and emits one event, or raises a ``LedgerError``
    with storage untouched and nothing emitted.

    ``owner`` and ``base_uri`` seed a storage backend that has none yet; an
    owner already recorded in storage is kept.
    """

    def __init__(
        self,
        storage: Optional[LedgerStorage] = None,
        events: Optional[EventSink] = None,
        settings: Optional[LedgerSettings] = None,
        owner: Optional[str] = None,
        base_uri: Optional[str] = None,
    ):
        self.settings = settings or get_settings()
        configure_logging(self.settings, replace=False)

        self.storage = storage or InMemoryStorage()
        if events is None:
            events = InMemoryEventSink()
            if self.settings.log_events:
                events = FanOutEventSink([events, LoggingEventSink()])
        self.events = events

        if owner is not None and is_null(self.storage.get_owner()):
            self.storage.set_owner(account_adapter.validate_python(owner))
        if base_uri is None:
            base_uri = self.settings.base_uri
        if base_uri and not self.storage.get_base_uri():
            self.storage.set_base_uri(uri_adapter.validate_python(base_uri))

    # Queries

    def balance_of(self, account: str, id: int) -> int:
        account = account_adapter.validate_python(account)
        id = token_id_adapter.validate_python(id)
        return self.storage.get_balance(id, account)

    def balance_of_batch(self, accounts: Sequence[str], ids: Sequence[int]) -> list[int]:
        if len(accounts) != len(ids):
            raise _reject(InvalidArrayLength(len(ids), len(accounts)))
        accounts = accounts_adapter.validate_python(list(accounts))
        ids = token_ids_adapter.validate_python(list(ids))
        return [self.storage.get_balance(id, account) for account, id in zip(accounts, ids)]

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        owner = account_adapter.validate_python(owner)
        operator = account_adapter.validate_python(operator)
        return self.storage.get_approval(owner, operator)

    def total_supply(self, id: int) -> int:
        return self.storage.get_supply(token_id_adapter.validate_python(id))

    def exists(self, id: int) -> bool:
        return self.total_supply(id) > 0

    def get_balance(self, account: str, id: int) -> BalanceView:
        return BalanceView(
            account=account,
            id=id,
            balance=self.balance_of(account, id),
            total_supply=self.total_supply(id),
        )

    def owner(self) -> str:
        return self.storage.get_owner()

    def paused(self) -> bool:
        return self.storage.get_paused()

    def uri(self, id: int) -> str:
        """Metadata URI for ``id``: ``<base>{id}.json``, or "" with no base set."""
        id = token_id_adapter.validate_python(id)
        base = self.storage.get_base_uri()
        if not base:
            return ""
        return f"{base}{id}.json"

    def ledger_info(self) -> LedgerInfo:
        return LedgerInfo(owner=self.owner(), paused=self.paused(), base_uri=self.storage.get_base_uri())

    def token_info(self, id: int) -> TokenInfo:
        supply = self.total_supply(id)
        return TokenInfo(id=id, total_supply=supply, exists=supply > 0, uri=self.uri(id))

    # Approvals

    def set_approval_for_all(self, ctx: CallContext, operator: str, approved: bool) -> ApprovalForAll:
        owner = ctx.caller
        operator = account_adapter.validate_python(operator)
        approved = flag_adapter.validate_python(approved)
        if operator == owner:
            raise _reject(InvalidOperator(operator))

        self.storage.set_approval(owner, operator, approved)
        event = ApprovalForAll(account=owner, operator=operator, approved=approved)
        self.events.emit(event)
        logger.debug("approval %s -> %s = %s", owner, operator, approved)
        return event

    # Transfers

    def safe_transfer_from(
        self,
        ctx: CallContext,
        from_: str,
        to: str,
        id: int,
        value: int,
        data: bytes = b"",
    ) -> TransferSingle:
        from_ = account_adapter.validate_python(from_)
        to = account_adapter.validate_python(to)
        self._check_authorized(ctx, from_)
        if is_null(to):
            raise _reject(InvalidReceiver(NULL_ACCOUNT))
        return self.update_single(ctx.caller, from_, to, id, value)

    def safe_batch_transfer_from(
        self,
        ctx: CallContext,
        from_: str,
        to: str,
        ids: Sequence[int],
        values: Sequence[int],
        data: bytes = b"",
    ) -> TransferBatch:
        from_ = account_adapter.validate_python(from_)
        to = account_adapter.validate_python(to)
        self._check_authorized(ctx, from_)
        if is_null(to):
            raise _reject(InvalidReceiver(NULL_ACCOUNT))
        return self.update_batch(ctx.caller, from_, to, ids, values)

    # Issuance, owner only

    def mint(self, ctx: CallContext, to: str, id: int, value: int, data: bytes = b"") -> TransferSingle:
        self._check_owner(ctx)
        to = account_adapter.validate_python(to)
        if is_null(to):
            raise _reject(InvalidReceiver(NULL_ACCOUNT))
        return self.update_single(ctx.caller, NULL_ACCOUNT, to, id, value)

    def mint_new(self, ctx: CallContext, to: str, value: int, data: bytes = b"") -> TransferSingle:
        """Mint under the next unused token id; the counter skips ids already in supply."""
        self._check_owner(ctx)
        to = account_adapter.validate_python(to)
        if is_null(to):
            raise _reject(InvalidReceiver(NULL_ACCOUNT))

        id = self.storage.get_next_token_id()
        while self.storage.get_supply(id) > 0:
            id += 1
        event = self.update_single(ctx.caller, NULL_ACCOUNT, to, id, value)
        self.storage.set_next_token_id(id + 1)
        return event

    def mint_batch(
        self,
        ctx: CallContext,
        to: str,
        ids: Sequence[int],
        values: Sequence[int],
        data: bytes = b"",
    ) -> TransferBatch:
        self._check_owner(ctx)
        to = account_adapter.validate_python(to)
        if is_null(to):
            raise _reject(InvalidReceiver(NULL_ACCOUNT))
        return self.update_batch(ctx.caller, NULL_ACCOUNT, to, ids, values)

    # Burning, holder or approved operator

    def burn(self, ctx: CallContext, from_: str, id: int, value: int) -> TransferSingle:
        from_ = account_adapter.validate_python(from_)
        self._check_authorized(ctx, from_)
        if is_null(from_):
            raise _reject(InvalidSender(NULL_ACCOUNT))
        return self.update_single(ctx.caller, from_, NULL_ACCOUNT, id, value)

    def burn_batch(self, ctx: CallContext, from_: str, ids: Sequence[int], values: Sequence[int]) -> TransferBatch:
        from_ = account_adapter.validate_python(from_)
        self._check_authorized(ctx, from_)
        if is_null(from_):
            raise _reject(InvalidSender(NULL_ACCOUNT))
        return self.update_batch(ctx.caller, from_, NULL_ACCOUNT, ids, values)

    # Administration, owner only

    def transfer_ownership(self, ctx: CallContext, new_owner: str) -> OwnershipTransferred:
        self._check_owner(ctx)
        new_owner = account_adapter.validate_python(new_owner)
        if is_null(new_owner):
            raise _reject(InvalidOwner(NULL_ACCOUNT))

        self.storage.set_owner(new_owner)
        event = OwnershipTransferred(previous_owner=ctx.caller, new_owner=new_owner)
        self.events.emit(event)
        logger.info("ownership %s -> %s", ctx.caller, new_owner)
        return event

    def pause(self, ctx: CallContext) -> Paused:
        self._check_owner(ctx)
        if self.storage.get_paused():
            raise _reject(LedgerPaused())
        self.storage.set_paused(True)
        event = Paused(account=ctx.caller)
        self.events.emit(event)
        logger.info("paused by %s", ctx.caller)
        return event

    def unpause(self, ctx: CallContext) -> Unpaused:
        self._check_owner(ctx)
        if not self.storage.get_paused():
            raise _reject(LedgerNotPaused())
        self.storage.set_paused(False)
        event = Unpaused(account=ctx.caller)
        self.events.emit(event)
        logger.info("unpaused by %s", ctx.caller)
        return event

    def set_uri(self, ctx: CallContext, new_uri: str) -> URIChanged:
        self._check_owner(ctx)
        new_uri = uri_adapter.validate_python(new_uri)
        self.storage.set_base_uri(new_uri)
        event = URIChanged(operator=ctx.caller, uri=new_uri)
        self.events.emit(event)
        return event

    # Balance update primitive. No authorization: callers are trusted.

    def update_single(self, operator: str, from_: str, to: str, id: int, value: int) -> TransferSingle:
        id = token_id_adapter.validate_python(id)
        value = quantity_adapter.validate_python(value)
        event = TransferSingle(operator=operator, from_=from_, to=to, id=id, value=value)
        self._check_not_paused()
        self._apply(event.from_, event.to, [id], [value])
        self.events.emit(event)
        return event

    def update_batch(
        self,
        operator: str,
        from_: str,
        to: str,
        ids: Sequence[int],
        values: Sequence[int],
    ) -> TransferBatch:
        if len(ids) != len(values):
            raise _reject(InvalidArrayLength(len(ids), len(values)))
        ids = token_ids_adapter.validate_python(list(ids))
        values = quantities_adapter.validate_python(list(values))
        event = TransferBatch(operator=operator, from_=from_, to=to, ids=tuple(ids), values=tuple(values))
        self._check_not_paused()
        self._apply(event.from_, event.to, ids, values)
        self.events.emit(event)
        return event

    def _apply(self, from_: str, to: str, ids: list[int], values: list[int]) -> None:
        working = WorkingSet(self.storage)
        for id, value in zip(ids, values):
            if is_null(from_) and is_null(to):
                continue

            if is_null(from_):
                supply = working.get_supply(id)
                if supply + value > MAX_UINT256:
                    raise _reject(BalanceOverflow(NULL_ACCOUNT, supply, value, id))
                working.set_supply(id, supply + value)
            else:
                balance = working.get_balance(id, from_)
                if balance < value:
                    raise _reject(InsufficientBalance(from_, balance, value, id))
                working.set_balance(id, from_, balance - value)

            if is_null(to):
                # Supply is debited as the null account's holding.
                supply = working.get_supply(id)
                if supply < value:
                    raise _reject(InsufficientBalance(NULL_ACCOUNT, supply, value, id))
                working.set_supply(id, supply - value)
            else:
                balance = working.get_balance(id, to)
                if balance + value > MAX_UINT256:
                    raise _reject(BalanceOverflow(to, balance, value, id))
                working.set_balance(id, to, balance + value)

        working.commit()
        logger.debug(
            "committed %d writes for %d pairs %s -> %s",
            working.pending_writes,
            len(ids),
            from_,
            to,
            extra={"token_id": ids[0] if len(ids) == 1 else None},
        )

    def _check_authorized(self, ctx: CallContext, owner: str) -> None:
        operator = ctx.caller
        if operator != owner and not self.storage.get_approval(owner, operator):
            raise _reject(MissingApprovalForAll(operator=operator, owner=owner))

    def _check_owner(self, ctx: CallContext) -> None:
        if ctx.caller != self.storage.get_owner() or is_null(ctx.caller):
            raise _reject(NotOwner(ctx.caller))

    def _check_not_paused(self) -> None:
        if self.storage.get_paused():
            raise _reject(LedgerPaused())

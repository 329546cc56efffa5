import re
from typing import Annotated, Literal, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictBool, StrictStr, TypeAdapter


MAX_UINT256 = 2**256 - 1
NULL_ACCOUNT = "0x" + "00" * 20

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _normalize_account(value: str) -> str:
    if not _ADDRESS_RE.match(value):
        raise ValueError(f"{value!r} is not a 20-byte hex address")
    return value.lower()


Account = Annotated[str, AfterValidator(_normalize_account)]
TokenId = Annotated[int, Field(ge=0, le=MAX_UINT256, strict=True)]
Quantity = Annotated[int, Field(ge=0, le=MAX_UINT256, strict=True)]

account_adapter = TypeAdapter(Account)
token_id_adapter = TypeAdapter(TokenId)
quantity_adapter = TypeAdapter(Quantity)
token_ids_adapter = TypeAdapter(list[TokenId])
quantities_adapter = TypeAdapter(list[Quantity])
accounts_adapter = TypeAdapter(list[Account])
flag_adapter = TypeAdapter(StrictBool)
uri_adapter = TypeAdapter(StrictStr)


def is_null(account: str) -> bool:
    return account == NULL_ACCOUNT


class CallContext(BaseModel):
    """Execution context handed in by the host for every mutating call."""

    caller: Account

    model_config = ConfigDict(frozen=True)


class TransferSingle(BaseModel):
    name: Literal["TransferSingle"] = "TransferSingle"
    operator: Account
    from_: Account = Field(alias="from")
    to: Account
    id: TokenId
    value: Quantity

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class TransferBatch(BaseModel):
    name: Literal["TransferBatch"] = "TransferBatch"
    operator: Account
    from_: Account = Field(alias="from")
    to: Account
    ids: tuple[TokenId, ...]
    values: tuple[Quantity, ...]

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ApprovalForAll(BaseModel):
    name: Literal["ApprovalForAll"] = "ApprovalForAll"
    account: Account
    operator: Account
    approved: bool

    model_config = ConfigDict(frozen=True)


class OwnershipTransferred(BaseModel):
    name: Literal["OwnershipTransferred"] = "OwnershipTransferred"
    previous_owner: Account
    new_owner: Account

    model_config = ConfigDict(frozen=True)


class Paused(BaseModel):
    name: Literal["Paused"] = "Paused"
    account: Account

    model_config = ConfigDict(frozen=True)


class Unpaused(BaseModel):
    name: Literal["Unpaused"] = "Unpaused"
    account: Account

    model_config = ConfigDict(frozen=True)


class URIChanged(BaseModel):
    name: Literal["URIChanged"] = "URIChanged"
    operator: Account
    uri: str

    model_config = ConfigDict(frozen=True)


LedgerEvent = Annotated[
    Union[TransferSingle, TransferBatch, ApprovalForAll, OwnershipTransferred, Paused, Unpaused, URIChanged],
    Field(discriminator="name"),
]


class BalanceView(BaseModel):
    account: Account
    id: TokenId
    balance: Quantity
    total_supply: Quantity

    model_config = ConfigDict(frozen=True)


class LedgerInfo(BaseModel):
    owner: Account
    paused: bool
    base_uri: str

    model_config = ConfigDict(frozen=True)


class TokenInfo(BaseModel):
    id: TokenId
    total_supply: Quantity
    exists: bool
    uri: str

    model_config = ConfigDict(frozen=True)

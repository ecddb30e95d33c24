"""Execution context for the contract: dependencies, environment, messages and responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .amount import Coin, check_uint128
from .errors import PaymentError, StdError
from .state import ContractState

MOCK_CONTRACT_ADDR = "cosmos2contract"
NANOS_PER_SECOND = 1_000_000_000

_MIN_ADDRESS_LENGTH = 3
_MAX_ADDRESS_LENGTH = 54


@dataclass
class Api:
    """Address validation as done by the host chain."""

    def addr_validate(self, address: str) -> str:
        """Return ``address`` if it is a valid, normalized address; raise StdError otherwise."""
        if len(address) < _MIN_ADDRESS_LENGTH:
            raise StdError.generic_err("Invalid input: human address too short")
        if len(address) > _MAX_ADDRESS_LENGTH:
            raise StdError.generic_err("Invalid input: human address too long")
        if address != address.lower():
            raise StdError.generic_err("Invalid input: address not normalized")
        return address


@dataclass
class Querier:
    """Answers queries about bank balances, cw20 balances and the bound port."""

    port_id: str = ""
    balances: dict[str, list[Coin]] = field(default_factory=dict)
    cw20_balances: dict[str, dict[str, int]] = field(default_factory=dict)

    def query_balance(self, address: str, denom: str) -> Coin:
        """The balance of ``address`` in ``denom``, zero if it holds none."""
        for coin in self.balances.get(address, []):
            if coin.denom == denom:
                return coin
        return Coin(denom=denom, amount=0)

    def update_balance(self, address: str, coins: list[Coin]) -> list[Coin]:
        """Replace the native balances of ``address``; returns the previous ones."""
        previous = self.balances.get(address, [])
        self.balances[address] = list(coins)
        return previous

    def query_cw20_balance(self, token: str, address: str) -> int:
        """The balance of ``address`` in the cw20 contract ``token``."""
        try:
            holders = self.cw20_balances[token]
        except KeyError:
            raise StdError.generic_err(f"Querier system error: No such contract: {token}") from None
        return holders.get(address, 0)

    def set_cw20_balance(self, token: str, address: str, amount: int) -> None:
        self.cw20_balances.setdefault(token, {})[address] = check_uint128(amount)


@dataclass
class Deps:
    """Storage, address API and querier handed to every entry point."""

    state: ContractState = field(default_factory=ContractState)
    api: Api = field(default_factory=Api)
    querier: Querier = field(default_factory=Querier)


@dataclass(frozen=True)
class BlockInfo:
    """The current block; ``time`` is in nanoseconds since the epoch."""

    height: int
    time: int
    chain_id: str


@dataclass(frozen=True)
class ContractInfo:
    address: str


@dataclass(frozen=True)
class Env:
    block: BlockInfo
    contract: ContractInfo


@dataclass(frozen=True)
class MessageInfo:
    """Who sent a message and which native funds came with it."""

    sender: str
    funds: list[Coin] = field(default_factory=list)


@dataclass(frozen=True)
class BankSend:
    to_address: str
    amount: list[Coin]


@dataclass(frozen=True)
class WasmExecute:
    contract_addr: str
    msg: bytes
    funds: list[Coin] = field(default_factory=list)


@dataclass(frozen=True)
class IbcSendPacket:
    """Send a packet on a channel; ``timeout`` is a timestamp in nanoseconds."""

    channel_id: str
    data: bytes
    timeout: int


CosmosMsg = Union[BankSend, WasmExecute, IbcSendPacket]


class ReplyOn(Enum):
    ALWAYS = "always"
    ERROR = "error"
    SUCCESS = "success"
    NEVER = "never"


@dataclass(frozen=True)
class SubMsg:
    """A message dispatched by a response, optionally reporting back to the contract."""

    msg: CosmosMsg
    id: int = 0
    gas_limit: int | None = None
    reply_on: ReplyOn = ReplyOn.NEVER

    @classmethod
    def reply_on_error(cls, msg: CosmosMsg, id: int) -> SubMsg:
        return cls(msg=msg, id=id, reply_on=ReplyOn.ERROR)


@dataclass
class Response:
    """What an entry point returns: messages to dispatch, event attributes and data."""

    messages: list[SubMsg] = field(default_factory=list)
    attributes: list[tuple[str, str]] = field(default_factory=list)
    data: bytes | None = None
    acknowledgement: bytes | None = None

    def add_message(self, msg: CosmosMsg) -> Response:
        self.messages.append(SubMsg(msg))
        return self

    def add_submessage(self, submsg: SubMsg) -> Response:
        self.messages.append(submsg)
        return self

    def add_attribute(self, key: str, value: object) -> Response:
        self.attributes.append((key, str(value)))
        return self

    def set_data(self, data: bytes) -> Response:
        self.data = data
        return self

    def set_ack(self, ack: bytes) -> Response:
        self.acknowledgement = ack
        return self


def one_coin(info: MessageInfo) -> Coin:
    """The single, non-zero native coin sent with a message."""
    if not info.funds:
        raise PaymentError.no_funds()
    if len(info.funds) > 1:
        raise PaymentError.multiple_denoms()
    coin = info.funds[0]
    if coin.amount == 0:
        raise PaymentError.no_funds()
    return coin


def nonpayable(info: MessageInfo) -> None:
    """Reject a message that came with native funds."""
    if info.funds:
        raise PaymentError.non_payable()


def mock_env() -> Env:
    """A fixed environment for tests and local runs."""
    return Env(
        block=BlockInfo(
            height=12_345,
            time=1_571_797_419_879_305_533,
            chain_id="cosmos-testnet-14002",
        ),
        contract=ContractInfo(address=MOCK_CONTRACT_ADDR),
    )


def mock_dependencies() -> Deps:
    """Empty storage with the default API and querier."""
    return Deps()
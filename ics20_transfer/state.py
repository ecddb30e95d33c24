"""Persistent contract state and channel balance bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .amount import UINT128_MAX, check_uint128
from .errors import InsufficientFunds, StdError


@dataclass
class ChannelState:
    """Balance of one denom on one channel."""

    outstanding: int = 0
    total_sent: int = 0


@dataclass
class Config:
    default_timeout: int
    default_gas_limit: int | None = None


@dataclass(frozen=True)
class IbcEndpoint:
    port_id: str
    channel_id: str


@dataclass(frozen=True)
class ChannelInfo:
    """Static information on one channel."""

    id: str
    counterparty_endpoint: IbcEndpoint
    connection_id: str


@dataclass(frozen=True)
class AllowInfo:
    gas_limit: int | None = None


@dataclass(frozen=True)
class ReplyArgs:
    """Carried from packet receipt to the reply handler."""

    channel: str
    denom: str
    amount: int


@dataclass(frozen=True)
class ContractVersion:
    contract: str
    version: str


@dataclass
class ContractState:
    """Everything the contract keeps in storage."""

    # Holds a Config, or an older layout written before a migration.
    config: Any = None
    admin: str | None = None
    reply_args: ReplyArgs | None = None
    contract_version: ContractVersion | None = None
    channel_info: dict[str, ChannelInfo] = field(default_factory=dict)
    channel_state: dict[tuple[str, str], ChannelState] = field(default_factory=dict)
    allow_list: dict[str, AllowInfo] = field(default_factory=dict)

    def load_config(self) -> Config:
        if self.config is None:
            raise StdError.not_found("cw20_ics20::state::Config")
        return self.config

    def load_channel(self, channel_id: str) -> ChannelInfo:
        try:
            return self.channel_info[channel_id]
        except KeyError:
            raise StdError.not_found("cw20_ics20::state::ChannelInfo") from None

    def load_reply_args(self) -> ReplyArgs:
        if self.reply_args is None:
            raise StdError.not_found("cw20_ics20::state::ReplyArgs")
        return self.reply_args

    def channels(self) -> list[ChannelInfo]:
        """All channels, ordered by id."""
        return [self.channel_info[key] for key in sorted(self.channel_info)]

    def allowed(self) -> list[tuple[str, AllowInfo]]:
        """All allowed contracts, ordered by address."""
        return sorted(self.allow_list.items())

    def channel_denoms(self, channel: str) -> list[tuple[str, ChannelState]]:
        """The (denom, state) pairs of one channel, ordered by denom."""
        return sorted(
            (denom, state)
            for (chan, denom), state in self.channel_state.items()
            if chan == channel
        )


def _add(left: int, right: int) -> int:
    total = left + check_uint128(right)
    if total > UINT128_MAX:
        raise StdError.overflow("Add", left, right)
    return total


def increase_channel_balance(
    state: ContractState, channel: str, denom: str, amount: int
) -> None:
    """Record tokens sent out over a channel."""
    current = state.channel_state.get((channel, denom), ChannelState())
    state.channel_state[(channel, denom)] = ChannelState(
        outstanding=_add(current.outstanding, amount),
        total_sent=_add(current.total_sent, amount),
    )


def reduce_channel_balance(
    state: ContractState, channel: str, denom: str, amount: int
) -> None:
    """Take tokens off the outstanding balance, failing if there are not enough."""
    current = state.channel_state.get((channel, denom))
    if current is None or current.outstanding < check_uint128(amount):
        raise InsufficientFunds()
    state.channel_state[(channel, denom)] = ChannelState(
        outstanding=current.outstanding - amount,
        total_sent=current.total_sent,
    )


def undo_reduce_channel_balance(
    state: ContractState, channel: str, denom: str, amount: int
) -> None:
    """Put back what reduce_channel_balance took; total_sent is left alone."""
    current = state.channel_state.get((channel, denom), ChannelState())
    state.channel_state[(channel, denom)] = ChannelState(
        outstanding=_add(current.outstanding, amount),
        total_sent=current.total_sent,
    )
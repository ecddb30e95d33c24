"""Messages the contract accepts and the responses it returns."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .amount import U64_MAX, Amount
from .errors import StdError
from .state import ChannelInfo

_TRANSFER_TYPE = "cw20_ics20::msg::TransferMsg"


@dataclass(frozen=True)
class AllowMsg:
    contract: str
    gas_limit: int | None = None


@dataclass(frozen=True)
class InitMsg:
    """Instantiation parameters; the timeout is in seconds."""

    default_timeout: int
    gov_contract: str
    allowlist: list[AllowMsg] = field(default_factory=list)
    default_gas_limit: int | None = None


@dataclass(frozen=True)
class MigrateMsg:
    default_gas_limit: int | None = None


def _parse_error(msg: str) -> StdError:
    return StdError.parse_err(_TRANSFER_TYPE, msg)


def _required_str(data: dict[str, Any], key: str) -> str:
    if key not in data:
        raise _parse_error(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise _parse_error(f"invalid type for `{key}`, expected a string")
    return value


def _optional_u64(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise _parse_error(f"invalid value for `{key}`, expected u64")
    return value


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise _parse_error(f"invalid type for `{key}`, expected a string")
    return value


@dataclass(frozen=True)
class TransferMsg:
    """Where and how to send tokens over a channel; the timeout is in seconds."""

    channel: str
    remote_address: str
    timeout: int | None = None
    memo: str | None = None

    _FIELDS = ("channel", "remote_address", "timeout", "memo")

    @classmethod
    def from_json(cls, data: bytes | str) -> TransferMsg:
        try:
            decoded = json.loads(data)
        except (UnicodeDecodeError, ValueError) as exc:
            raise _parse_error(str(exc)) from None
        if not isinstance(decoded, dict):
            raise _parse_error("expected a JSON object")
        unknown = sorted(set(decoded) - set(cls._FIELDS))
        if unknown:
            raise _parse_error(f"unknown field `{unknown[0]}`")
        return cls(
            channel=_required_str(decoded, "channel"),
            remote_address=_required_str(decoded, "remote_address"),
            timeout=_optional_u64(decoded, "timeout"),
            memo=_optional_str(decoded, "memo"),
        )

    def to_json(self) -> bytes:
        body = {
            "channel": self.channel,
            "remote_address": self.remote_address,
            "timeout": self.timeout,
            "memo": self.memo,
        }
        return json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode()


@dataclass(frozen=True)
class Cw20ReceiveMsg:
    """Sent by a cw20 contract when tokens are handed to this contract."""

    sender: str
    amount: int
    msg: bytes


@dataclass(frozen=True)
class UpdateAdminMsg:
    admin: str


@dataclass(frozen=True)
class PortQuery:
    pass


@dataclass(frozen=True)
class ListChannelsQuery:
    pass


@dataclass(frozen=True)
class ChannelQuery:
    id: str


@dataclass(frozen=True)
class ConfigQuery:
    pass


@dataclass(frozen=True)
class AdminQuery:
    pass


@dataclass(frozen=True)
class AllowedQuery:
    contract: str


@dataclass(frozen=True)
class ListAllowedQuery:
    start_after: str | None = None
    limit: int | None = None


@dataclass(frozen=True)
class ListChannelsResponse:
    channels: list[ChannelInfo] = field(default_factory=list)


@dataclass(frozen=True)
class ChannelResponse:
    """A channel with its outstanding balances and totals sent, per denom."""

    info: ChannelInfo
    balances: list[Amount] = field(default_factory=list)
    total_sent: list[Amount] = field(default_factory=list)


@dataclass(frozen=True)
class PortResponse:
    port_id: str


@dataclass(frozen=True)
class ConfigResponse:
    default_timeout: int
    default_gas_limit: int | None
    gov_contract: str


@dataclass(frozen=True)
class AllowedResponse:
    is_allowed: bool
    gas_limit: int | None = None


@dataclass(frozen=True)
class AllowedInfo:
    contract: str
    gas_limit: int | None = None


@dataclass(frozen=True)
class ListAllowedResponse:
    allow: list[AllowedInfo] = field(default_factory=list)


@dataclass(frozen=True)
class AdminResponse:
    admin: str | None = None
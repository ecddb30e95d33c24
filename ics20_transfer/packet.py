"""The ICS20 wire format: channels, packets and acknowledgements."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from .amount import U64_MAX, check_uint128
from .errors import AmountOverflow, StdError
from .state import IbcEndpoint

ICS20_VERSION = "ics20-1"

_PACKET_TYPE = "cw20_ics20::ibc::Ics20Packet"
_ACK_TYPE = "cw20_ics20::ibc::Ics20Ack"


class IbcOrder(Enum):
    UNORDERED = "ORDER_UNORDERED"
    ORDERED = "ORDER_ORDERED"


ICS20_ORDERING = IbcOrder.UNORDERED


@dataclass(frozen=True)
class IbcChannel:
    """A channel between a local and a remote endpoint."""

    endpoint: IbcEndpoint
    counterparty_endpoint: IbcEndpoint
    order: IbcOrder
    version: str
    connection_id: str


@dataclass(frozen=True)
class IbcPacket:
    """A packet in flight; ``timeout`` is a timestamp in nanoseconds."""

    data: bytes
    src: IbcEndpoint
    dest: IbcEndpoint
    sequence: int
    timeout: int


def _decode_object(data: bytes | str, target: str) -> dict[str, Any]:
    try:
        decoded = json.loads(data)
    except (UnicodeDecodeError, ValueError) as exc:
        raise StdError.parse_err(target, str(exc)) from None
    if not isinstance(decoded, dict):
        raise StdError.parse_err(target, "expected a JSON object")
    return decoded


def _encode(body: dict[str, Any]) -> bytes:
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode()


def _required_str(data: dict[str, Any], key: str) -> str:
    if key not in data:
        raise StdError.parse_err(_PACKET_TYPE, f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise StdError.parse_err(_PACKET_TYPE, f"invalid type for `{key}`, expected a string")
    return value


def _parse_uint128(text: str) -> int:
    if not text.isdigit() or not text.isascii():
        raise StdError.parse_err(_PACKET_TYPE, f"invalid Uint128 '{text}'")
    value = int(text)
    try:
        return check_uint128(value)
    except ValueError:
        raise StdError.parse_err(_PACKET_TYPE, f"invalid Uint128 '{text}'") from None


@dataclass(frozen=True)
class Ics20Packet:
    """The data of an ICS20 transfer packet, JSON-compatible with the SDK format."""

    amount: int
    denom: str
    sender: str
    receiver: str
    memo: str | None = None

    def __post_init__(self) -> None:
        check_uint128(self.amount)

    def with_memo(self, memo: str | None) -> Ics20Packet:
        return replace(self, memo=memo)

    def validate(self) -> None:
        """Raise AmountOverflow if the amount does not fit 64 bits."""
        if self.amount > U64_MAX:
            raise AmountOverflow()

    def to_json(self) -> bytes:
        body: dict[str, Any] = {
            "amount": str(self.amount),
            "denom": self.denom,
            "receiver": self.receiver,
            "sender": self.sender,
        }
        if self.memo is not None:
            body["memo"] = self.memo
        return _encode(body)

    @classmethod
    def from_json(cls, data: bytes | str) -> Ics20Packet:
        decoded = _decode_object(data, _PACKET_TYPE)
        memo = decoded.get("memo")
        if memo is not None and not isinstance(memo, str):
            raise StdError.parse_err(_PACKET_TYPE, "invalid type for `memo`, expected a string")
        return cls(
            amount=_parse_uint128(_required_str(decoded, "amount")),
            denom=_required_str(decoded, "denom"),
            sender=_required_str(decoded, "sender"),
            receiver=_required_str(decoded, "receiver"),
            memo=memo,
        )


@dataclass(frozen=True)
class Ics20Ack:
    """A generic ICS acknowledgement: either a result or an error, never both."""

    result: bytes | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError("an acknowledgement holds exactly one of result and error")

    @property
    def is_success(self) -> bool:
        return self.result is not None

    def to_json(self) -> bytes:
        if self.result is not None:
            return _encode({"result": base64.b64encode(self.result).decode("ascii")})
        return _encode({"error": self.error})

    @classmethod
    def from_json(cls, data: bytes | str) -> Ics20Ack:
        decoded = _decode_object(data, _ACK_TYPE)
        if len(decoded) != 1:
            raise StdError.parse_err(_ACK_TYPE, "expected exactly one variant")
        ((key, value),) = decoded.items()
        if not isinstance(value, str):
            raise StdError.parse_err(_ACK_TYPE, f"invalid type for `{key}`, expected a string")
        if key == "result":
            try:
                return cls(result=base64.b64decode(value, validate=True))
            except binascii.Error as exc:
                raise StdError.parse_err(_ACK_TYPE, f"invalid base64: {exc}") from None
        if key == "error":
            return cls(error=value)
        raise StdError.parse_err(_ACK_TYPE, f"unknown variant `{key}`")


def ack_success() -> bytes:
    """The serialized success acknowledgement."""
    return Ics20Ack(result=b"1").to_json()


def ack_fail(err: str) -> bytes:
    """A serialized error acknowledgement carrying ``err``."""
    return Ics20Ack(error=err).to_json()
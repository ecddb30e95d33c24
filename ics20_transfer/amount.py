"""Token amounts: native coins and cw20 tokens."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import AmountOverflow

UINT128_MAX = 2**128 - 1
U64_MAX = 2**64 - 1

CW20_PREFIX = "cw20:"


def check_uint128(value: int) -> int:
    """Return ``value`` if it fits an unsigned 128-bit integer, else raise ValueError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"amount must be an integer, got {type(value).__name__}")
    if not 0 <= value <= UINT128_MAX:
        raise ValueError(f"amount out of range for Uint128: {value}")
    return value


@dataclass(frozen=True)
class Coin:
    """A native token amount."""

    denom: str
    amount: int

    def __post_init__(self) -> None:
        check_uint128(self.amount)


@dataclass(frozen=True)
class Cw20Coin:
    """An amount of a cw20 token held by a contract address."""

    address: str
    amount: int

    def __post_init__(self) -> None:
        check_uint128(self.amount)


@dataclass(frozen=True)
class Amount:
    """Either a native coin or a cw20 token amount."""

    coin: Coin | Cw20Coin

    @classmethod
    def from_parts(cls, denom: str, amount: int) -> Amount:
        """Build from a denom, where ``cw20:<address>`` names a cw20 token."""
        if denom.startswith(CW20_PREFIX):
            return cls(Cw20Coin(address=denom[len(CW20_PREFIX):], amount=amount))
        return cls(Coin(denom=denom, amount=amount))

    @classmethod
    def cw20(cls, amount: int, address: str) -> Amount:
        return cls(Cw20Coin(address=address, amount=amount))

    @classmethod
    def native(cls, amount: int, denom: str) -> Amount:
        return cls(Coin(denom=denom, amount=amount))

    @property
    def is_cw20(self) -> bool:
        return isinstance(self.coin, Cw20Coin)

    def denom(self) -> str:
        if isinstance(self.coin, Cw20Coin):
            return f"{CW20_PREFIX}{self.coin.address}"
        return self.coin.denom

    def amount(self) -> int:
        return self.coin.amount

    def u64_amount(self) -> int:
        """The amount, checked to fit an unsigned 64-bit integer."""
        value = self.coin.amount
        if value > U64_MAX:
            raise AmountOverflow()
        return value

    def is_empty(self) -> bool:
        return self.coin.amount == 0
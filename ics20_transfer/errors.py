"""Errors raised by the token transfer contract."""

from __future__ import annotations


class ContractError(Exception):
    """Base class of every error the contract reports."""

    default_message = "contract error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(self.default_message if message is None else message)

    @property
    def message(self) -> str:
        return str(self.args[0])

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContractError):
            return NotImplemented
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class StdError(ContractError):
    """A generic storage, parsing or arithmetic failure."""

    @classmethod
    def generic_err(cls, msg: str) -> StdError:
        return cls(f"Generic error: {msg}")

    @classmethod
    def not_found(cls, kind: str) -> StdError:
        return cls(f"{kind} not found")

    @classmethod
    def invalid_utf8(cls, msg: str) -> StdError:
        return cls(f"Cannot decode UTF8 bytes into string: {msg}")

    @classmethod
    def parse_err(cls, target: str, msg: str) -> StdError:
        return cls(f"Error parsing into type {target}: {msg}")

    @classmethod
    def overflow(cls, operation: str, left: int, right: int) -> StdError:
        return cls(f"Overflow: Cannot {operation} with {left} and {right}")


class PaymentError(ContractError):
    """The funds attached to a message are not what it expects."""

    @classmethod
    def no_funds(cls) -> PaymentError:
        return cls("No funds sent")

    @classmethod
    def multiple_denoms(cls) -> PaymentError:
        return cls("Sent more than one denomination")

    @classmethod
    def non_payable(cls) -> PaymentError:
        return cls("This message does no accept funds")


class AdminError(ContractError):
    """The caller is not the contract admin."""

    @classmethod
    def not_admin(cls) -> AdminError:
        return cls("Caller is not admin")


class NoSuchChannel(ContractError):
    def __init__(self, channel_id: str) -> None:
        self.id = channel_id
        super().__init__(f"Channel doesn't exist: {channel_id}")


class NoFunds(ContractError):
    default_message = "Didn't send any funds"


class AmountOverflow(ContractError):
    default_message = "Amount larger than 2**64, not supported by ics20 packets"


class InvalidIbcVersion(ContractError):
    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(f"Only supports channel with ibc version ics20-1, got {version}")


class OnlyOrderedChannel(ContractError):
    default_message = "Only supports unordered channel"


class InsufficientFunds(ContractError):
    default_message = "Insufficient funds to redeem voucher on channel"


class NoForeignTokens(ContractError):
    default_message = (
        "Only accepts tokens that originate on this chain, not native tokens of remote chain"
    )


class FromOtherPort(ContractError):
    def __init__(self, port: str) -> None:
        self.port = port
        super().__init__(f"Parsed port from denom ({port}) doesn't match packet")


class FromOtherChannel(ContractError):
    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"Parsed channel from denom ({channel}) doesn't match packet")


class CannotMigrate(ContractError):
    def __init__(self, previous_contract: str) -> None:
        self.previous_contract = previous_contract
        super().__init__(
            f"Cannot migrate from different contract type: {previous_contract}"
        )


class CannotMigrateVersion(ContractError):
    def __init__(self, previous_version: str) -> None:
        self.previous_version = previous_version
        super().__init__(f"Cannot migrate from unsupported version: {previous_version}")


class UnknownReplyId(ContractError):
    def __init__(self, reply_id: int) -> None:
        self.id = reply_id
        super().__init__(f"Got a submessage reply with unknown id: {reply_id}")


class CannotLowerGas(ContractError):
    default_message = "You cannot lower the gas limit for a contract on the allow list"


class Unauthorized(ContractError):
    default_message = "Only the governance contract can do this"


class NotOnAllowList(ContractError):
    default_message = (
        "You can only send cw20 tokens that have been explicitly allowed by governance"
    )
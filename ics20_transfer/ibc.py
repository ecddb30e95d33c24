"""IBC entry points: channel handshake, packet receipt, acknowledgement and timeout."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace

from .amount import Amount, Coin
from .errors import (
    ContractError,
    FromOtherChannel,
    FromOtherPort,
    InvalidIbcVersion,
    NoForeignTokens,
    NotOnAllowList,
    OnlyOrderedChannel,
    UnknownReplyId,
)
from .packet import (
    ICS20_ORDERING,
    ICS20_VERSION,
    IbcChannel,
    IbcPacket,
    Ics20Ack,
    Ics20Packet,
    ack_fail,
    ack_success,
)
from .runtime import BankSend, CosmosMsg, Deps, Env, Response, SubMsg, WasmExecute
from .state import (
    ChannelInfo,
    IbcEndpoint,
    ReplyArgs,
    reduce_channel_balance,
    undo_reduce_channel_balance,
)

RECEIVE_ID = 1337
ACK_FAILURE_ID = 0xFA17


@dataclass(frozen=True)
class Reply:
    """The outcome of a submessage; ``error`` is None when it succeeded."""

    id: int
    error: str | None = None


def reply(deps: Deps, env: Env, reply: Reply) -> Response:
    """Handle a failed token payout by turning it into an error acknowledgement."""
    if reply.id == RECEIVE_ID:
        if reply.error is None:
            return Response()
        # Put back the balance that packet receipt took optimistically.
        args = deps.state.load_reply_args()
        undo_reduce_channel_balance(deps.state, args.channel, args.denom, args.amount)
        return Response().set_data(ack_fail(reply.error))
    if reply.id == ACK_FAILURE_ID:
        if reply.error is None:
            return Response()
        return Response().set_data(ack_fail(reply.error))
    raise UnknownReplyId(reply.id)


def _enforce_order_and_version(
    channel: IbcChannel, counterparty_version: str | None
) -> None:
    if channel.version != ICS20_VERSION:
        raise InvalidIbcVersion(channel.version)
    if counterparty_version is not None and counterparty_version != ICS20_VERSION:
        raise InvalidIbcVersion(counterparty_version)
    if channel.order != ICS20_ORDERING:
        raise OnlyOrderedChannel()


def ibc_channel_open(
    deps: Deps, env: Env, channel: IbcChannel, counterparty_version: str | None = None
) -> None:
    """Accept only unordered ics20-1 channels."""
    _enforce_order_and_version(channel, counterparty_version)


def ibc_channel_connect(
    deps: Deps, env: Env, channel: IbcChannel, counterparty_version: str | None = None
) -> Response:
    """Record a newly connected channel."""
    _enforce_order_and_version(channel, counterparty_version)
    info = ChannelInfo(
        id=channel.endpoint.channel_id,
        counterparty_endpoint=channel.counterparty_endpoint,
        connection_id=channel.connection_id,
    )
    deps.state.channel_info[info.id] = info
    return Response()


def parse_voucher_denom(voucher_denom: str, remote_endpoint: IbcEndpoint) -> str:
    """The local denom of a voucher ``port/channel/denom`` sent back from ``remote_endpoint``."""
    parts = voucher_denom.split("/", 2)
    if len(parts) != 3:
        raise NoForeignTokens()
    port, channel, denom = parts
    if port != remote_endpoint.port_id:
        raise FromOtherPort(port)
    if channel != remote_endpoint.channel_id:
        raise FromOtherChannel(channel)
    return denom


def check_gas_limit(deps: Deps, amount: Amount) -> int | None:
    """Gas limit for paying out ``amount``; cw20 tokens must be allowed or a default set."""
    if not amount.is_cw20:
        return None
    address = deps.api.addr_validate(amount.coin.address)
    allowed = deps.state.allow_list.get(address)
    if allowed is not None:
        return allowed.gas_limit
    default = deps.state.load_config().default_gas_limit
    if default is None:
        raise NotOnAllowList()
    return default


def send_amount(amount: Amount, recipient: str) -> CosmosMsg:
    """The message that pays ``amount`` to ``recipient``."""
    coin = amount.coin
    if isinstance(coin, Coin):
        return BankSend(to_address=recipient, amount=[coin])
    body = {"transfer": {"recipient": recipient, "amount": str(coin.amount)}}
    return WasmExecute(
        contract_addr=coin.address,
        msg=json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode(),
        funds=[],
    )


def _do_ibc_packet_receive(deps: Deps, packet: IbcPacket) -> Response:
    msg = Ics20Packet.from_json(packet.data)
    channel = packet.dest.channel_id

    denom = parse_voucher_denom(msg.denom, packet.src)
    reduce_channel_balance(deps.state, channel, denom, msg.amount)
    deps.state.reply_args = ReplyArgs(channel=channel, denom=denom, amount=msg.amount)

    to_send = Amount.from_parts(denom, msg.amount)
    gas_limit = check_gas_limit(deps, to_send)
    submsg = replace(
        SubMsg.reply_on_error(send_amount(to_send, msg.receiver), RECEIVE_ID),
        gas_limit=gas_limit,
    )
    return (
        Response()
        .set_ack(ack_success())
        .add_submessage(submsg)
        .add_attribute("action", "receive")
        .add_attribute("sender", msg.sender)
        .add_attribute("receiver", msg.receiver)
        .add_attribute("denom", denom)
        .add_attribute("amount", msg.amount)
        .add_attribute("success", "true")
    )


def ibc_packet_receive(deps: Deps, env: Env, packet: IbcPacket) -> Response:
    """Redeem returning vouchers; failures become error acknowledgements, never exceptions."""
    try:
        return _do_ibc_packet_receive(deps, packet)
    except ContractError as err:
        return (
            Response()
            .set_ack(ack_fail(str(err)))
            .add_attribute("action", "receive")
            .add_attribute("success", "false")
            .add_attribute("error", str(err))
        )


def _on_packet_success(packet: IbcPacket) -> Response:
    msg = Ics20Packet.from_json(packet.data)
    return (
        Response()
        .add_attribute("action", "acknowledge")
        .add_attribute("sender", msg.sender)
        .add_attribute("receiver", msg.receiver)
        .add_attribute("denom", msg.denom)
        .add_attribute("amount", msg.amount)
        .add_attribute("success", "true")
    )


def _on_packet_failure(deps: Deps, packet: IbcPacket, err: str) -> Response:
    msg = Ics20Packet.from_json(packet.data)
    reduce_channel_balance(deps.state, packet.src.channel_id, msg.denom, msg.amount)

    to_send = Amount.from_parts(msg.denom, msg.amount)
    gas_limit = check_gas_limit(deps, to_send)
    submsg = replace(
        SubMsg.reply_on_error(send_amount(to_send, msg.sender), ACK_FAILURE_ID),
        gas_limit=gas_limit,
    )
    return (
        Response()
        .add_submessage(submsg)
        .add_attribute("action", "acknowledge")
        .add_attribute("sender", msg.sender)
        .add_attribute("receiver", msg.receiver)
        .add_attribute("denom", msg.denom)
        .add_attribute("amount", msg.amount)
        .add_attribute("success", "false")
        .add_attribute("error", err)
    )


def ibc_packet_ack(
    deps: Deps, env: Env, acknowledgement: bytes, original_packet: IbcPacket
) -> Response:
    """On success only report; on failure refund the sender."""
    ack = Ics20Ack.from_json(acknowledgement)
    if ack.is_success:
        return _on_packet_success(original_packet)
    return _on_packet_failure(deps, original_packet, ack.error or "")


def ibc_packet_timeout(deps: Deps, env: Env, packet: IbcPacket) -> Response:
    """Refund the sender of a packet that timed out."""
    return _on_packet_failure(deps, packet, "timeout")
import json
from dataclasses import replace

import pytest

from ics20_transfer.amount import Amount, Coin
from ics20_transfer.contract import execute, instantiate, query_channel
from ics20_transfer.errors import (
    FromOtherChannel,
    FromOtherPort,
    InsufficientFunds,
    InvalidIbcVersion,
    NoForeignTokens,
    NotOnAllowList,
    OnlyOrderedChannel,
    StdError,
    UnknownReplyId,
)
from ics20_transfer.ibc import (
    ACK_FAILURE_ID,
    RECEIVE_ID,
    Reply,
    check_gas_limit,
    ibc_channel_connect,
    ibc_channel_open,
    ibc_packet_ack,
    ibc_packet_receive,
    ibc_packet_timeout,
    parse_voucher_denom,
    reply,
    send_amount,
)
from ics20_transfer.migrations import migrate
from ics20_transfer.msg import AllowMsg, Cw20ReceiveMsg, InitMsg, MigrateMsg, TransferMsg
from ics20_transfer.packet import (
    ICS20_ORDERING,
    ICS20_VERSION,
    IbcChannel,
    IbcOrder,
    IbcPacket,
    Ics20Ack,
    Ics20Packet,
    ack_fail,
)
from ics20_transfer.runtime import (
    BankSend,
    IbcSendPacket,
    MessageInfo,
    NANOS_PER_SECOND,
    ReplyOn,
    SubMsg,
    WasmExecute,
    mock_dependencies,
    mock_env,
)
from ics20_transfer.state import ChannelInfo, IbcEndpoint, increase_channel_balance

DEFAULT_TIMEOUT = 3600
CONTRACT_PORT = "ibc:wasm1234567890abcdef"
REMOTE_PORT = "transfer"
CONNECTION_ID = "connection-2"


def mock_channel(channel_id):
    return IbcChannel(
        endpoint=IbcEndpoint(CONTRACT_PORT, channel_id),
        counterparty_endpoint=IbcEndpoint(REMOTE_PORT, f"{channel_id}5"),
        order=ICS20_ORDERING,
        version=ICS20_VERSION,
        connection_id=CONNECTION_ID,
    )


def mock_channel_info(channel_id):
    return ChannelInfo(
        id=channel_id,
        counterparty_endpoint=IbcEndpoint(REMOTE_PORT, f"{channel_id}5"),
        connection_id=CONNECTION_ID,
    )


def add_channel(deps, channel_id):
    channel = mock_channel(channel_id)
    ibc_channel_open(deps, mock_env(), channel, None)
    ibc_channel_connect(deps, mock_env(), channel, ICS20_VERSION)


def setup(channels, allow):
    deps = mock_dependencies()
    allowlist = [AllowMsg(contract=contract, gas_limit=gas) for contract, gas in allow]
    msg = InitMsg(
        default_timeout=DEFAULT_TIMEOUT,
        gov_contract="gov",
        allowlist=allowlist,
        default_gas_limit=None,
    )
    res = instantiate(deps, mock_env(), MessageInfo(sender="anyone"), msg)
    assert res.messages == []
    for channel in channels:
        add_channel(deps, channel)
    return deps


def cw20_payment(amount, address, recipient, gas_limit):
    body = {"transfer": {"recipient": recipient, "amount": str(amount)}}
    exec_msg = WasmExecute(
        contract_addr=address,
        msg=json.dumps(body, separators=(",", ":")).encode(),
        funds=[],
    )
    return SubMsg(msg=exec_msg, id=RECEIVE_ID, gas_limit=gas_limit, reply_on=ReplyOn.ERROR)


def native_payment(amount, denom, recipient):
    return SubMsg.reply_on_error(
        BankSend(to_address=recipient, amount=[Coin(denom, amount)]), RECEIVE_ID
    )


def mock_receive_packet(my_channel, amount, denom, receiver):
    data = Ics20Packet(
        denom=f"{REMOTE_PORT}/channel-1234/{denom}",
        amount=amount,
        sender="remote-sender",
        receiver=receiver,
    )
    return IbcPacket(
        data=data.to_json(),
        src=IbcEndpoint(REMOTE_PORT, "channel-1234"),
        dest=IbcEndpoint(CONTRACT_PORT, my_channel),
        sequence=3,
        timeout=1665321069 * NANOS_PER_SECOND,
    )


def send_native(deps, channel, amount, denom, sender="local-sender"):
    msg = TransferMsg(channel=channel, remote_address="my-remote-address")
    info = MessageInfo(sender=sender, funds=[Coin(denom, amount)])
    res = execute(deps, mock_env(), info, msg)
    sent = res.messages[0].msg
    return IbcPacket(
        data=sent.data,
        src=IbcEndpoint(CONTRACT_PORT, channel),
        dest=IbcEndpoint(REMOTE_PORT, f"{channel}5"),
        sequence=1,
        timeout=sent.timeout,
    )


def test_send_receive_cw20():
    send_channel = "channel-9"
    cw20_addr = "token-addr"
    cw20_denom = "cw20:token-addr"
    gas_limit = 1234567
    deps = setup(["channel-1", "channel-7", send_channel], [(cw20_addr, gas_limit)])

    recv_packet = mock_receive_packet(send_channel, 876543210, cw20_denom, "local-rcpt")
    recv_high_packet = mock_receive_packet(send_channel, 1876543210, cw20_denom, "local-rcpt")

    res = ibc_packet_receive(deps, mock_env(), recv_packet)
    assert res.messages == []
    no_funds = Ics20Ack(error=str(InsufficientFunds()))
    assert Ics20Ack.from_json(res.acknowledgement) == no_funds

    transfer = TransferMsg(channel=send_channel, remote_address="remote-rcpt")
    msg = Cw20ReceiveMsg(sender="local-sender", amount=987654321, msg=transfer.to_json())
    res = execute(deps, mock_env(), MessageInfo(sender=cw20_addr), msg)
    assert len(res.messages) == 1
    expected = Ics20Packet(
        denom=cw20_denom,
        amount=987654321,
        sender="local-sender",
        receiver="remote-rcpt",
    )
    timeout = mock_env().block.time + DEFAULT_TIMEOUT * NANOS_PER_SECOND
    assert res.messages[0] == SubMsg(
        IbcSendPacket(channel_id=send_channel, data=expected.to_json(), timeout=timeout)
    )

    state = query_channel(deps, send_channel)
    assert state.balances == [Amount.cw20(987654321, cw20_addr)]
    assert state.total_sent == [Amount.cw20(987654321, cw20_addr)]

    res = ibc_packet_receive(deps, mock_env(), recv_high_packet)
    assert res.messages == []
    assert Ics20Ack.from_json(res.acknowledgement) == no_funds

    res = ibc_packet_receive(deps, mock_env(), recv_packet)
    assert len(res.messages) == 1
    assert res.messages[0] == cw20_payment(876543210, cw20_addr, "local-rcpt", gas_limit)
    assert Ics20Ack.from_json(res.acknowledgement).is_success

    state = query_channel(deps, send_channel)
    assert state.balances == [Amount.cw20(111111111, cw20_addr)]
    assert state.total_sent == [Amount.cw20(987654321, cw20_addr)]


def test_send_receive_native():
    send_channel = "channel-9"
    deps = setup(["channel-1", "channel-7", send_channel], [])
    denom = "uatom"

    recv_packet = mock_receive_packet(send_channel, 876543210, denom, "local-rcpt")
    recv_high_packet = mock_receive_packet(send_channel, 1876543210, denom, "local-rcpt")

    res = ibc_packet_receive(deps, mock_env(), recv_packet)
    assert res.messages == []
    no_funds = Ics20Ack(error=str(InsufficientFunds()))
    assert Ics20Ack.from_json(res.acknowledgement) == no_funds

    msg = TransferMsg(channel=send_channel, remote_address="my-remote-address")
    info = MessageInfo(sender="local-sender", funds=[Coin(denom, 987654321)])
    execute(deps, mock_env(), info, msg)

    state = query_channel(deps, send_channel)
    assert state.balances == [Amount.native(987654321, denom)]
    assert state.total_sent == [Amount.native(987654321, denom)]

    res = ibc_packet_receive(deps, mock_env(), recv_high_packet)
    assert res.messages == []
    assert Ics20Ack.from_json(res.acknowledgement) == no_funds

    res = ibc_packet_receive(deps, mock_env(), recv_packet)
    assert len(res.messages) == 1
    assert res.messages[0] == native_payment(876543210, denom, "local-rcpt")
    assert Ics20Ack.from_json(res.acknowledgement).is_success

    state = query_channel(deps, send_channel)
    assert state.balances == [Amount.native(111111111, denom)]
    assert state.total_sent == [Amount.native(987654321, denom)]


def test_receive_attributes():
    deps = setup(["channel-9"], [])
    send_native(deps, "channel-9", 1000, "uatom")
    res = ibc_packet_receive(
        deps, mock_env(), mock_receive_packet("channel-9", 400, "uatom", "local-rcpt")
    )
    assert res.attributes == [
        ("action", "receive"),
        ("sender", "remote-sender"),
        ("receiver", "local-rcpt"),
        ("denom", "uatom"),
        ("amount", "400"),
        ("success", "true"),
    ]


def test_receive_failure_attributes():
    deps = setup(["channel-9"], [])
    res = ibc_packet_receive(
        deps, mock_env(), mock_receive_packet("channel-9", 400, "uatom", "local-rcpt")
    )
    err = str(InsufficientFunds())
    assert res.attributes == [("action", "receive"), ("success", "false"), ("error", err)]


def test_receive_bad_data_gives_error_ack():
    deps = setup(["channel-9"], [])
    packet = replace(
        mock_receive_packet("channel-9", 1, "uatom", "local-rcpt"), data=b"{}"
    )
    res = ibc_packet_receive(deps, mock_env(), packet)
    assert res.messages == []
    assert not Ics20Ack.from_json(res.acknowledgement).is_success


def test_receive_foreign_token_gives_error_ack():
    deps = setup(["channel-9"], [])
    data = Ics20Packet(amount=5, denom="uremote", sender="remote-sender", receiver="rcpt")
    packet = replace(mock_receive_packet("channel-9", 5, "x", "rcpt"), data=data.to_json())
    res = ibc_packet_receive(deps, mock_env(), packet)
    assert Ics20Ack.from_json(res.acknowledgement) == Ics20Ack(error=str(NoForeignTokens()))


def test_receive_cw20_not_allowed_gives_error_ack():
    deps = setup(["channel-9"], [])
    increase_channel_balance(deps.state, "channel-9", "cw20:other-token", 1000)
    packet = mock_receive_packet("channel-9", 500, "cw20:other-token", "rcpt")
    res = ibc_packet_receive(deps, mock_env(), packet)
    assert res.messages == []
    assert Ics20Ack.from_json(res.acknowledgement) == Ics20Ack(error=str(NotOnAllowList()))


def test_check_gas_limit_handles_all_cases():
    send_channel = "channel-9"
    allowed = "foobar"
    allowed_gas = 777666
    deps = setup([send_channel], [(allowed, allowed_gas)])

    assert check_gas_limit(deps, Amount.cw20(500, allowed)) == allowed_gas

    random = "tokenz"
    with pytest.raises(NotOnAllowList):
        check_gas_limit(deps, Amount.cw20(500, random))

    def_limit = 54321
    migrate(deps, mock_env(), MigrateMsg(default_gas_limit=def_limit))

    assert check_gas_limit(deps, Amount.cw20(500, allowed)) == allowed_gas
    assert check_gas_limit(deps, Amount.cw20(500, random)) == def_limit


def test_check_gas_limit_native_is_unlimited():
    deps = setup([], [])
    assert check_gas_limit(deps, Amount.native(500, "ucosm")) is None


@pytest.mark.parametrize(
    "denom, expected",
    [
        ("transfer/channel-1234/ucosm", "ucosm"),
        ("transfer/channel-1234/cw20:token/extra", "cw20:token/extra"),
    ],
)
def test_parse_voucher_denom_ok(denom, expected):
    endpoint = IbcEndpoint("transfer", "channel-1234")
    assert parse_voucher_denom(denom, endpoint) == expected


def test_parse_voucher_denom_errors():
    endpoint = IbcEndpoint("transfer", "channel-1234")
    with pytest.raises(NoForeignTokens):
        parse_voucher_denom("ucosm", endpoint)
    with pytest.raises(FromOtherPort) as port_err:
        parse_voucher_denom("other/channel-1234/ucosm", endpoint)
    assert port_err.value == FromOtherPort("other")
    with pytest.raises(FromOtherChannel) as chan_err:
        parse_voucher_denom("transfer/channel-9/ucosm", endpoint)
    assert chan_err.value == FromOtherChannel("channel-9")


def test_send_amount_native_and_cw20():
    assert send_amount(Amount.native(5, "ucosm"), "rcpt") == BankSend(
        to_address="rcpt", amount=[Coin("ucosm", 5)]
    )
    cw20 = send_amount(Amount.cw20(7, "token-addr"), "rcpt")
    assert cw20 == WasmExecute(
        contract_addr="token-addr",
        msg=b'{"transfer":{"recipient":"rcpt","amount":"7"}}',
        funds=[],
    )


def test_channel_open_rejects_wrong_version_and_order():
    channel = mock_channel("channel-1")
    with pytest.raises(InvalidIbcVersion) as exc:
        ibc_channel_open(mock_dependencies(), mock_env(), replace(channel, version="ics20-2"))
    assert exc.value == InvalidIbcVersion("ics20-2")
    with pytest.raises(InvalidIbcVersion) as exc:
        ibc_channel_open(mock_dependencies(), mock_env(), channel, "ics20-7")
    assert exc.value == InvalidIbcVersion("ics20-7")
    with pytest.raises(OnlyOrderedChannel):
        ibc_channel_open(
            mock_dependencies(), mock_env(), replace(channel, order=IbcOrder.ORDERED)
        )


def test_channel_connect_records_channel():
    deps = mock_dependencies()
    ibc_channel_connect(deps, mock_env(), mock_channel("channel-3"), ICS20_VERSION)
    assert deps.state.channel_info == {"channel-3": mock_channel_info("channel-3")}


def test_channel_connect_rejects_bad_counterparty_version():
    deps = mock_dependencies()
    with pytest.raises(InvalidIbcVersion):
        ibc_channel_connect(deps, mock_env(), mock_channel("channel-3"), "other")
    assert deps.state.channel_info == {}


def test_ack_success_keeps_balance():
    deps = setup(["channel-9"], [])
    packet = send_native(deps, "channel-9", 1000, "uatom")
    res = ibc_packet_ack(deps, mock_env(), Ics20Ack(result=b"1").to_json(), packet)
    assert res.messages == []
    assert res.attributes == [
        ("action", "acknowledge"),
        ("sender", "local-sender"),
        ("receiver", "my-remote-address"),
        ("denom", "uatom"),
        ("amount", "1000"),
        ("success", "true"),
    ]
    assert query_channel(deps, "channel-9").balances == [Amount.native(1000, "uatom")]


def test_ack_error_refunds_sender():
    deps = setup(["channel-9"], [])
    packet = send_native(deps, "channel-9", 1000, "uatom")
    res = ibc_packet_ack(deps, mock_env(), ack_fail("bad coin"), packet)
    assert res.messages == [
        SubMsg.reply_on_error(
            BankSend(to_address="local-sender", amount=[Coin("uatom", 1000)]), ACK_FAILURE_ID
        )
    ]
    assert ("error", "bad coin") in res.attributes
    assert ("success", "false") in res.attributes
    state = query_channel(deps, "channel-9")
    assert state.balances == [Amount.native(0, "uatom")]
    assert state.total_sent == [Amount.native(1000, "uatom")]


def test_ack_with_bad_data_raises():
    deps = setup(["channel-9"], [])
    packet = send_native(deps, "channel-9", 1000, "uatom")
    with pytest.raises(StdError):
        ibc_packet_ack(deps, mock_env(), b"not json", packet)


def test_timeout_refunds_cw20_with_gas_limit():
    deps = setup(["channel-9"], [("token-addr", 4242)])
    transfer = TransferMsg(channel="channel-9", remote_address="remote-rcpt")
    msg = Cw20ReceiveMsg(sender="local-sender", amount=300, msg=transfer.to_json())
    res = execute(deps, mock_env(), MessageInfo(sender="token-addr"), msg)
    sent = res.messages[0].msg
    packet = IbcPacket(
        data=sent.data,
        src=IbcEndpoint(CONTRACT_PORT, "channel-9"),
        dest=IbcEndpoint(REMOTE_PORT, "channel-95"),
        sequence=1,
        timeout=sent.timeout,
    )
    res = ibc_packet_timeout(deps, mock_env(), packet)
    assert len(res.messages) == 1
    refund = res.messages[0]
    assert refund.id == ACK_FAILURE_ID
    assert refund.gas_limit == 4242
    assert refund.msg == WasmExecute(
        contract_addr="token-addr",
        msg=b'{"transfer":{"recipient":"local-sender","amount":"300"}}',
        funds=[],
    )
    assert res.attributes[-1] == ("error", "timeout")
    assert query_channel(deps, "channel-9").balances == [Amount.cw20(0, "token-addr")]


def test_timeout_without_balance_fails():
    deps = setup(["channel-9"], [])
    packet = send_native(deps, "channel-9", 1000, "uatom")
    ibc_packet_timeout(deps, mock_env(), packet)
    with pytest.raises(InsufficientFunds):
        ibc_packet_timeout(deps, mock_env(), packet)


def test_reply_on_receive_error_restores_balance():
    deps = setup(["channel-9"], [])
    send_native(deps, "channel-9", 987654321, "uatom")
    ibc_packet_receive(
        deps, mock_env(), mock_receive_packet("channel-9", 876543210, "uatom", "local-rcpt")
    )
    assert query_channel(deps, "channel-9").balances == [Amount.native(111111111, "uatom")]

    res = reply(deps, mock_env(), Reply(RECEIVE_ID, error="out of gas"))
    assert res.data == ack_fail("out of gas")
    state = query_channel(deps, "channel-9")
    assert state.balances == [Amount.native(987654321, "uatom")]
    assert state.total_sent == [Amount.native(987654321, "uatom")]


def test_reply_success_and_ack_failure():
    deps = setup(["channel-9"], [])
    assert reply(deps, mock_env(), Reply(RECEIVE_ID)).data is None
    assert reply(deps, mock_env(), Reply(ACK_FAILURE_ID)).data is None
    res = reply(deps, mock_env(), Reply(ACK_FAILURE_ID, error="bad coin"))
    assert res.data == b'{"error":"bad coin"}'


def test_reply_unknown_id():
    deps = setup([], [])
    with pytest.raises(UnknownReplyId) as exc:
        reply(deps, mock_env(), Reply(99))
    assert exc.value == UnknownReplyId(99)
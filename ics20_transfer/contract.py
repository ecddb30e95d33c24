"""Contract entry points: instantiation, execution and queries."""

from __future__ import annotations

from itertools import islice

from .amount import Amount, Cw20Coin
from .errors import AdminError, CannotLowerGas, NoFunds, NoSuchChannel, NotOnAllowList
from .migrations import CONTRACT_NAME, CONTRACT_VERSION
from .msg import (
    AdminQuery,
    AdminResponse,
    AllowedInfo,
    AllowedQuery,
    AllowedResponse,
    AllowMsg,
    ChannelQuery,
    ChannelResponse,
    ConfigQuery,
    ConfigResponse,
    Cw20ReceiveMsg,
    InitMsg,
    ListAllowedQuery,
    ListAllowedResponse,
    ListChannelsQuery,
    ListChannelsResponse,
    PortQuery,
    PortResponse,
    TransferMsg,
    UpdateAdminMsg,
)
from .packet import Ics20Packet
from .runtime import (
    NANOS_PER_SECOND,
    Deps,
    Env,
    IbcSendPacket,
    MessageInfo,
    Response,
    nonpayable,
    one_coin,
)
from .state import AllowInfo, Config, ContractVersion, increase_channel_balance

MAX_LIMIT = 30
DEFAULT_LIMIT = 10


def instantiate(deps: Deps, env: Env, info: MessageInfo, msg: InitMsg) -> Response:
    """Store the configuration, the governance admin and the initial allow list."""
    deps.state.contract_version = ContractVersion(CONTRACT_NAME, CONTRACT_VERSION)
    deps.state.config = Config(
        default_timeout=msg.default_timeout,
        default_gas_limit=msg.default_gas_limit,
    )
    deps.state.admin = deps.api.addr_validate(msg.gov_contract)
    for allowed in msg.allowlist:
        contract = deps.api.addr_validate(allowed.contract)
        deps.state.allow_list[contract] = AllowInfo(gas_limit=allowed.gas_limit)
    return Response()


def execute(deps: Deps, env: Env, info: MessageInfo, msg: object) -> Response:
    """Dispatch an execute message by its type."""
    match msg:
        case Cw20ReceiveMsg():
            return execute_receive(deps, env, info, msg)
        case TransferMsg():
            coin = one_coin(info)
            return execute_transfer(deps, env, msg, Amount(coin), info.sender)
        case AllowMsg():
            return execute_allow(deps, env, info, msg)
        case UpdateAdminMsg():
            admin = deps.api.addr_validate(msg.admin)
            return _execute_update_admin(deps, info, admin)
    raise TypeError(f"unsupported execute message: {type(msg).__name__}")


def _assert_admin(deps: Deps, sender: str) -> None:
    if deps.state.admin is None or deps.state.admin != sender:
        raise AdminError.not_admin()


def _execute_update_admin(deps: Deps, info: MessageInfo, admin: str) -> Response:
    _assert_admin(deps, info.sender)
    deps.state.admin = admin
    return (
        Response()
        .add_attribute("action", "update_admin")
        .add_attribute("admin", admin)
        .add_attribute("sender", info.sender)
    )


def execute_receive(
    deps: Deps, env: Env, info: MessageInfo, wrapper: Cw20ReceiveMsg
) -> Response:
    """Send cw20 tokens handed over by the token contract that is the message sender."""
    nonpayable(info)
    msg = TransferMsg.from_json(wrapper.msg)
    amount = Amount(Cw20Coin(address=info.sender, amount=wrapper.amount))
    sender = deps.api.addr_validate(wrapper.sender)
    return execute_transfer(deps, env, msg, amount, sender)


def execute_transfer(
    deps: Deps, env: Env, msg: TransferMsg, amount: Amount, sender: str
) -> Response:
    """Send ``amount`` over a registered channel as an ICS20 packet."""
    if amount.is_empty():
        raise NoFunds()
    if msg.channel not in deps.state.channel_info:
        raise NoSuchChannel(msg.channel)
    config = deps.state.load_config()

    if amount.is_cw20:
        address = deps.api.addr_validate(amount.coin.address)
        # With a default gas limit set, any cw20 token may be sent.
        if config.default_gas_limit is None and address not in deps.state.allow_list:
            raise NotOnAllowList()

    timeout_delta = config.default_timeout if msg.timeout is None else msg.timeout
    timeout = env.block.time + timeout_delta * NANOS_PER_SECOND

    packet = Ics20Packet(
        amount=amount.amount(),
        denom=amount.denom(),
        sender=sender,
        receiver=msg.remote_address,
    ).with_memo(msg.memo)
    packet.validate()

    # Booked optimistically; failures and timeouts take it off again.
    increase_channel_balance(deps.state, msg.channel, amount.denom(), amount.amount())

    send = IbcSendPacket(channel_id=msg.channel, data=packet.to_json(), timeout=timeout)
    return (
        Response()
        .add_message(send)
        .add_attribute("action", "transfer")
        .add_attribute("sender", packet.sender)
        .add_attribute("receiver", packet.receiver)
        .add_attribute("denom", packet.denom)
        .add_attribute("amount", packet.amount)
    )


def execute_allow(deps: Deps, env: Env, info: MessageInfo, allow: AllowMsg) -> Response:
    """Allow a cw20 contract or raise its gas limit; limits can never be lowered."""
    _assert_admin(deps, info.sender)
    contract = deps.api.addr_validate(allow.contract)
    old = deps.state.allow_list.get(contract)
    if old is not None:
        new_limit = allow.gas_limit
        if new_limit is not None and (old.gas_limit is None or new_limit < old.gas_limit):
            raise CannotLowerGas()
    deps.state.allow_list[contract] = AllowInfo(gas_limit=allow.gas_limit)

    gas = "None" if allow.gas_limit is None else str(allow.gas_limit)
    return (
        Response()
        .add_attribute("action", "allow")
        .add_attribute("contract", allow.contract)
        .add_attribute("gas_limit", gas)
    )


def query(deps: Deps, env: Env, msg: object) -> object:
    """Answer a query message with its response object."""
    match msg:
        case PortQuery():
            return query_port(deps)
        case ListChannelsQuery():
            return query_list(deps)
        case ChannelQuery():
            return query_channel(deps, msg.id)
        case ConfigQuery():
            return query_config(deps)
        case AllowedQuery():
            return query_allowed(deps, msg.contract)
        case ListAllowedQuery():
            return list_allowed(deps, msg.start_after, msg.limit)
        case AdminQuery():
            return AdminResponse(admin=deps.state.admin)
    raise TypeError(f"unsupported query message: {type(msg).__name__}")


def query_port(deps: Deps) -> PortResponse:
    return PortResponse(port_id=deps.querier.port_id)


def query_list(deps: Deps) -> ListChannelsResponse:
    return ListChannelsResponse(channels=deps.state.channels())


def query_channel(deps: Deps, id: str) -> ChannelResponse:
    """A channel with its outstanding balances and totals sent, ordered by denom."""
    info = deps.state.load_channel(id)
    denoms = deps.state.channel_denoms(id)
    return ChannelResponse(
        info=info,
        balances=[Amount.from_parts(denom, s.outstanding) for denom, s in denoms],
        total_sent=[Amount.from_parts(denom, s.total_sent) for denom, s in denoms],
    )


def query_config(deps: Deps) -> ConfigResponse:
    cfg = deps.state.load_config()
    return ConfigResponse(
        default_timeout=cfg.default_timeout,
        default_gas_limit=cfg.default_gas_limit,
        gov_contract=deps.state.admin or "",
    )


def query_allowed(deps: Deps, contract: str) -> AllowedResponse:
    address = deps.api.addr_validate(contract)
    info = deps.state.allow_list.get(address)
    if info is None:
        return AllowedResponse(is_allowed=False, gas_limit=None)
    return AllowedResponse(is_allowed=True, gas_limit=info.gas_limit)


def list_allowed(
    deps: Deps, start_after: str | None, limit: int | None
) -> ListAllowedResponse:
    """A page of allowed contracts in address order, starting after ``start_after``."""
    size = min(DEFAULT_LIMIT if limit is None else limit, MAX_LIMIT)
    start = None if start_after is None else deps.api.addr_validate(start_after)
    entries = (
        AllowedInfo(contract=address, gas_limit=info.gas_limit)
        for address, info in deps.state.allowed()
        if start is None or address > start
    )
    return ListAllowedResponse(allow=list(islice(entries, size)))
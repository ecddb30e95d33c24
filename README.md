# ics20_transfer

An in-memory model of an ICS20 token-transfer contract. It sends native coins
and cw20 tokens over IBC channels and keeps a balance for every
`(channel, denom)` pair. Tokens are let back in only up to what was sent out.
Every entry point is a plain Python function. It works on a `Deps` object
that holds the contract state, an address API and a querier.

## Installation

```
pip install .
pip install ".[test]"   # with the test dependencies
```

## Modules

- **`ics20_transfer.amount`**: `Coin`, `Cw20Coin` and `Amount`.
  - Build an amount with `Amount.native(amount, denom)`,
    `Amount.cw20(amount, address)` or `Amount.from_parts(denom, amount)`.
    A denom that starts with `cw20:` is read as a cw20 contract address.
  - `denom()`, `amount()` and `is_empty()` read an amount.
  - `u64_amount()` raises `AmountOverflow` above 2**64 - 1.
  - Amounts must fit an unsigned 128-bit integer.
- **`ics20_transfer.state`**: `ContractState` keeps the contract's stored data.
  - It holds the config, the admin, the allow list, channel info,
    per-channel balances (`ChannelState`), reply arguments and the stored
    `ContractVersion`.
  - `increase_channel_balance` adds to both `outstanding` and `total_sent`.
  - `reduce_channel_balance` takes from `outstanding`. It raises
    `InsufficientFunds` when there is not enough.
  - `undo_reduce_channel_balance` puts `outstanding` back and leaves
    `total_sent` alone.
- **`ics20_transfer.msg`**: the messages and their responses.
  - Messages: `InitMsg`, `AllowMsg`, `MigrateMsg`, `TransferMsg`,
    `Cw20ReceiveMsg` and `UpdateAdminMsg`.
  - Queries: `PortQuery`, `ListChannelsQuery`, `ChannelQuery`, `ConfigQuery`,
    `AdminQuery`, `AllowedQuery` and `ListAllowedQuery`.
  - The matching `*Response` classes.
  - `TransferMsg.from_json` and `TransferMsg.to_json` handle the JSON carried
    inside a `Cw20ReceiveMsg`. A missing `memo` or `timeout` is accepted.
- **`ics20_transfer.runtime`**: the environment the contract runs in.
  - `Deps`, `Api`, `Querier`, `Env`, `BlockInfo`, `ContractInfo` and
    `MessageInfo`.
  - The outgoing messages `BankSend`, `WasmExecute` and `IbcSendPacket`.
  - `SubMsg` with `ReplyOn`, and `Response`.
  - The helpers `one_coin`, `nonpayable`, `mock_env()` and
    `mock_dependencies()`.
  - Block time and packet timeouts are in nanoseconds.
- **`ics20_transfer.packet`**: the wire format.
  - `IbcOrder`, `IbcChannel` and `IbcPacket`.
  - `Ics20Packet` for the packet data. It uses JSON with the amount as a
    string and leaves `memo` out when there is none. `validate()` rejects
    amounts above 64 bits.
  - `Ics20Ack`, written as `{"result": "<base64>"}` or `{"error": "..."}`.
  - `ack_success()` and `ack_fail(err)`.
- **`ics20_transfer.ibc`**: the IBC handlers.
  - `ibc_channel_open` and `ibc_channel_connect` accept only unordered
    `ics20-1` channels. `ibc_channel_connect` records the channel.
  - `ibc_packet_receive` redeems vouchers of the form `port/channel/denom`.
    It turns every error into an error acknowledgement and never raises.
  - `ibc_packet_ack` and `ibc_packet_timeout` refund the sender on failure.
  - `reply` restores balances when a payout submessage fails.
  - Helpers: `parse_voucher_denom`, `check_gas_limit` and `send_amount`.
- **`ics20_transfer.contract`**: the contract entry points.
  - `instantiate`.
  - `execute`, which dispatches on the message type: `Cw20ReceiveMsg`,
    `TransferMsg`, `AllowMsg` or `UpdateAdminMsg`.
  - `query`, which returns response objects rather than encoded bytes.
  - The individual handlers: `execute_receive`, `execute_transfer`,
    `execute_allow`, `query_port`, `query_list`, `query_channel`,
    `query_config`, `query_allowed` and `list_allowed`.
  - `list_allowed` pages results: 10 by default, at most 30.
  - Gas limits on the allow list can be raised but never lowered
    (`CannotLowerGas`).
- **`ics20_transfer.migrations`**: stored state from older versions.
  - `migrate` accepts stored versions from `0.11.1` up to the current
    `CONTRACT_VERSION`.
  - It converts a `LegacyConfig` and runs `update_balances`, which fails
    when more than one channel is open.
  - A `MigrateMsg` with `default_gas_limit` sets the default gas limit.
- **`ics20_transfer.errors`**: all errors derive from `ContractError`.
  - Examples: `NoSuchChannel`, `NoFunds`, `NotOnAllowList`,
    `InsufficientFunds`, `CannotMigrateVersion`.
  - Also `StdError`, `PaymentError` and `AdminError` for storage, payment
    and admin failures.
  - Errors compare equal when their type and message match.

## Example

```python
from ics20_transfer.amount import Amount, Coin
from ics20_transfer.contract import execute, instantiate, query_channel
from ics20_transfer.ibc import ibc_channel_connect, ibc_channel_open
from ics20_transfer.msg import InitMsg, TransferMsg
from ics20_transfer.packet import IbcChannel, IbcOrder
from ics20_transfer.runtime import MessageInfo, mock_dependencies, mock_env
from ics20_transfer.state import IbcEndpoint

deps = mock_dependencies()
env = mock_env()
instantiate(deps, env, MessageInfo("anyone", []),
            InitMsg(default_timeout=3600, gov_contract="gov", allowlist=[]))

channel = IbcChannel(
    endpoint=IbcEndpoint("ibc:wasm1234567890abcdef", "channel-9"),
    counterparty_endpoint=IbcEndpoint("transfer", "channel-95"),
    order=IbcOrder.UNORDERED,
    version="ics20-1",
    connection_id="connection-2",
)
ibc_channel_open(deps, env, channel, None)
ibc_channel_connect(deps, env, channel, "ics20-1")

response = execute(deps, env, MessageInfo("local-sender", [Coin("uatom", 1000)]),
                   TransferMsg(channel="channel-9", remote_address="remote-rcpt"))

assert query_channel(deps, "channel-9").balances == [Amount.native(1000, "uatom")]
```

## What it does not do

- It does not connect to a chain or relay packets. Messages such as
  `IbcSendPacket`, `BankSend` and `WasmExecute` are returned in a `Response`
  and are not dispatched.
- State lives in memory in a `ContractState` and is not persisted.
- There is no handler for closing a channel.
- There is no command-line program.
- `query_port` returns whatever `port_id` the `Querier` was given.

## Running the tests

```
pytest
```
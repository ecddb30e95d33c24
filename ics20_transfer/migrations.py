"""Migration of stored state from older contract versions."""

from __future__ import annotations

from dataclasses import dataclass

import semver

from .amount import Amount, Coin
from .errors import CannotMigrate, CannotMigrateVersion, StdError
from .msg import MigrateMsg
from .runtime import Deps, Env, Response
from .state import ChannelState, Config, ContractVersion

CONTRACT_NAME = "crates.io:cw20-ics20"
CONTRACT_VERSION = "1.0.1"

MIGRATE_MIN_VERSION = "0.11.1"
MIGRATE_VERSION_2 = "0.12.0-alpha1"
# The last release whose balances still need the v2 -> v3 update.
MIGRATE_VERSION_3 = "0.13.0"


@dataclass(frozen=True)
class LegacyConfig:
    """Configuration layout used before 0.12.0."""

    default_timeout: int
    gov_contract: str


def _parse_version(text: str) -> semver.Version:
    try:
        return semver.Version.parse(text)
    except ValueError as exc:
        raise StdError.generic_err(f"Semver: {exc}") from None


def update_balances(deps: Deps, env: Env) -> None:
    """Account for tokens in flight that older versions only booked on acknowledgement."""
    channels = sorted(deps.state.channel_info)
    if not channels:
        return
    if len(channels) > 1:
        raise CannotMigrate("multiple channels open")
    channel = channels[0]
    for denom, state in deps.state.channel_denoms(channel):
        _update_denom(deps, env.contract.address, channel, denom, state)


def _update_denom(
    deps: Deps, contract: str, channel: str, denom: str, state: ChannelState
) -> None:
    coin = Amount.from_parts(denom, state.outstanding).coin
    if isinstance(coin, Coin):
        balance = deps.querier.query_balance(contract, coin.denom).amount
    else:
        balance = deps.querier.query_cw20_balance(coin.address, contract)

    diff = balance - state.outstanding
    if diff < 0:
        raise StdError.overflow("Sub", balance, state.outstanding)
    if diff:
        deps.state.channel_state[(channel, denom)] = ChannelState(
            outstanding=state.outstanding + diff,
            total_sent=state.total_sent + diff,
        )


def _load_legacy_config(deps: Deps) -> LegacyConfig:
    stored = deps.state.config
    if stored is None:
        raise StdError.not_found("cw20_ics20::migrations::v1::Config")
    if not isinstance(stored, LegacyConfig):
        raise StdError.parse_err(
            "cw20_ics20::migrations::v1::Config", "missing field `gov_contract`"
        )
    return stored


def migrate(deps: Deps, env: Env, msg: MigrateMsg) -> Response:
    """Bring stored state up to the current version, optionally setting a default gas limit."""
    version = _parse_version(CONTRACT_VERSION)
    stored = deps.state.contract_version
    if stored is None:
        raise StdError.not_found("cw2::ContractVersion")
    storage_version = _parse_version(stored.version)

    if stored.contract != CONTRACT_NAME:
        raise CannotMigrate(stored.contract)
    if storage_version > version:
        raise CannotMigrateVersion(stored.version)
    if storage_version < _parse_version(MIGRATE_MIN_VERSION):
        raise CannotMigrateVersion(stored.version)

    if storage_version <= _parse_version(MIGRATE_VERSION_2):
        old_config = _load_legacy_config(deps)
        deps.state.admin = old_config.gov_contract
        deps.state.config = Config(
            default_timeout=old_config.default_timeout, default_gas_limit=None
        )
    if storage_version <= _parse_version(MIGRATE_VERSION_3):
        update_balances(deps, env)

    if msg.default_gas_limit is not None:
        current = deps.state.load_config()
        deps.state.config = Config(
            default_timeout=current.default_timeout,
            default_gas_limit=msg.default_gas_limit,
        )

    if storage_version < version:
        deps.state.contract_version = ContractVersion(CONTRACT_NAME, CONTRACT_VERSION)

    return Response()
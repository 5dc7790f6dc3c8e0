"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .errors import BranchNotFoundError, NotConfiguredError

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    chain_id: int | None = None


@dataclass(frozen=True)
class BranchConfig:
    """Contract addresses of one collateral branch."""

    coll_symbol: str = ""
    coll_token: str = ""
    borrower_operations: str = ""
    sorted_troves: str = ""
    trove_manager: str = ""


@dataclass(frozen=True)
class CentConfig:
    hint_helpers: str = ""
    branches: tuple[BranchConfig, ...] = ()


@dataclass(frozen=True)
class OrderBookConfig:
    core_address: str = ""
    settlement_asset: str = ""
    asset_decimals: int = 6
    max_scan: int = 250
    max_concurrency: int = 25
    default_duration_seconds: int = 30 * 24 * 60 * 60
    default_collateral_ratio_bps: int = 15000


@dataclass(frozen=True)
class FeeConfig:
    floor_fee_usd: float = 0.0
    fee_bps: float = 0.0


@dataclass(frozen=True)
class QuotesConfig:
    borrow: FeeConfig = field(
        default_factory=lambda: FeeConfig(floor_fee_usd=2.23, fee_bps=10.0)
    )
    lend: FeeConfig = field(
        default_factory=lambda: FeeConfig(floor_fee_usd=1.5, fee_bps=8.0)
    )


@dataclass(frozen=True)
class HintsConfig:
    trials_factor: int = 10
    rounds: int = 1
    seed: int = 42


@dataclass(frozen=True)
class ExecutionConfig:
    reset_allowance_after_tx: bool = False
    confirmation_timeout: float | None = None
    poll_interval: float = 2.0


@dataclass(frozen=True)
class SignerConfig:
    private_key: str = ""


@dataclass(frozen=True)
class AppConfig:
    chain: ChainConfig = field(default_factory=ChainConfig)
    cent: CentConfig = field(default_factory=CentConfig)
    order_book: OrderBookConfig = field(default_factory=OrderBookConfig)
    quotes: QuotesConfig = field(default_factory=QuotesConfig)
    hints: HintsConfig = field(default_factory=HintsConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    signer: SignerConfig = field(default_factory=SignerConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    chain_id = raw.get("chain_id")
    return ChainConfig(
        rpc_endpoints=tuple(raw.get("rpc_endpoints", [])),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        chain_id=int(chain_id) if chain_id not in (None, "") else None,
    )


def _build_branches(raw: list[dict[str, Any]]) -> tuple[BranchConfig, ...]:
    branches: list[BranchConfig] = []
    for b in raw:
        branches.append(
            BranchConfig(
                coll_symbol=b.get("coll_symbol", ""),
                coll_token=b.get("coll_token", ""),
                borrower_operations=b.get("borrower_operations", ""),
                sorted_troves=b.get("sorted_troves", ""),
                trove_manager=b.get("trove_manager", ""),
            )
        )
    return tuple(branches)


def _build_cent(raw: dict[str, Any]) -> CentConfig:
    return CentConfig(
        hint_helpers=raw.get("hint_helpers", ""),
        branches=_build_branches(raw.get("branches", [])),
    )


def _build_order_book(raw: dict[str, Any]) -> OrderBookConfig:
    defaults = OrderBookConfig()
    return OrderBookConfig(
        core_address=raw.get("core_address", ""),
        settlement_asset=raw.get("settlement_asset", ""),
        asset_decimals=int(raw.get("asset_decimals", defaults.asset_decimals)),
        max_scan=int(raw.get("max_scan", defaults.max_scan)),
        max_concurrency=int(raw.get("max_concurrency", defaults.max_concurrency)),
        default_duration_seconds=int(
            raw.get("default_duration_seconds", defaults.default_duration_seconds)
        ),
        default_collateral_ratio_bps=int(
            raw.get(
                "default_collateral_ratio_bps", defaults.default_collateral_ratio_bps
            )
        ),
    )


def _build_fee(raw: dict[str, Any], default: FeeConfig) -> FeeConfig:
    return FeeConfig(
        floor_fee_usd=float(raw.get("floor_fee_usd", default.floor_fee_usd)),
        fee_bps=float(raw.get("fee_bps", default.fee_bps)),
    )


def _build_quotes(raw: dict[str, Any]) -> QuotesConfig:
    defaults = QuotesConfig()
    return QuotesConfig(
        borrow=_build_fee(raw.get("borrow", {}), defaults.borrow),
        lend=_build_fee(raw.get("lend", {}), defaults.lend),
    )


def _build_hints(raw: dict[str, Any]) -> HintsConfig:
    return HintsConfig(
        trials_factor=int(raw.get("trials_factor", 10)),
        rounds=int(raw.get("rounds", 1)),
        seed=int(raw.get("seed", 42)),
    )


def _build_execution(raw: dict[str, Any]) -> ExecutionConfig:
    timeout = raw.get("confirmation_timeout")
    return ExecutionConfig(
        reset_allowance_after_tx=bool(raw.get("reset_allowance_after_tx", False)),
        confirmation_timeout=float(timeout) if timeout not in (None, "") else None,
        poll_interval=float(raw.get("poll_interval", 2.0)),
    )


def _build_signer(raw: dict[str, Any]) -> SignerConfig:
    return SignerConfig(private_key=raw.get("private_key", ""))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        chain=_build_chain(raw.get("chain", {})),
        cent=_build_cent(raw.get("cent", {})),
        order_book=_build_order_book(raw.get("order_book", {})),
        quotes=_build_quotes(raw.get("quotes", {})),
        hints=_build_hints(raw.get("hints", {})),
        execution=_build_execution(raw.get("execution", {})),
        signer=_build_signer(raw.get("signer", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")

    seen: set[str] = set()
    for branch in cfg.cent.branches:
        if not branch.coll_symbol:
            raise ValueError("Every branch needs a coll_symbol")
        symbol = branch.coll_symbol.upper()
        if symbol in seen:
            raise ValueError(f"Duplicate branch symbol '{branch.coll_symbol}'")
        seen.add(symbol)

    if cfg.order_book.max_scan <= 0:
        raise ValueError("order_book.max_scan must be positive")
    if cfg.order_book.max_concurrency <= 0:
        raise ValueError("order_book.max_concurrency must be positive")
    if cfg.order_book.asset_decimals < 0:
        raise ValueError("order_book.asset_decimals must not be negative")
    if cfg.hints.trials_factor <= 0 or cfg.hints.rounds <= 0:
        raise ValueError("hints.trials_factor and hints.rounds must be positive")


def get_branch(cent: CentConfig, symbol: str) -> tuple[int, BranchConfig]:
    """Return ``(collateral index, branch)`` for a symbol, case-insensitive."""
    upper = symbol.upper()
    for index, branch in enumerate(cent.branches):
        if branch.coll_symbol.upper() == upper:
            return index, branch
    raise BranchNotFoundError(f"Unknown collateral: {symbol}")


def require_address(value: str, name: str) -> str:
    """Return a configured contract address or raise NotConfiguredError."""
    if not value or value == ZERO_ADDRESS:
        raise NotConfiguredError(f"{name} address not configured")
    return value

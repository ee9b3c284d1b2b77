"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .core.risk import ThresholdPolicy

logger = logging.getLogger(__name__)

MORPHO_BLUE_ADDRESS = "0xBBBBBbbBBb9cC5e90e3b3Af64bdAF62C37EEFFCb"
MORPHO_API_URL = "https://blue-api.morpho.org/graphql"

ORACLE_SOURCES = ("market", "feeds")
_MARKET_ID_RE = re.compile(r"0x[0-9a-fA-F]{64}")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    name: str = "base"
    chain_id: int = 8453
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class OracleConfig:
    """Where collateral/loan prices come from.

    ``market`` prices collateral in loan tokens from the market oracle's
    ``price()``; ``feeds`` uses the two feed addresses given here.
    """

    source: str = "market"
    collateral_feed: str = ""
    borrow_feed: str = ""


@dataclass(frozen=True)
class PositionAlertConfig:
    policy: ThresholdPolicy = ThresholdPolicy.RELATIVE
    ltv_threshold: float = 0.9


@dataclass(frozen=True)
class PositionConfig:
    enabled: bool = False
    wallet_address: str = ""
    market_id: str = ""
    morpho_address: str = MORPHO_BLUE_ADDRESS
    oracle: OracleConfig = field(default_factory=OracleConfig)
    alert: PositionAlertConfig = field(default_factory=PositionAlertConfig)
    check_interval_seconds: int = 300
    alert_cooldown_seconds: int = 360


@dataclass(frozen=True)
class VaultsConfig:
    enabled: bool = False
    api_url: str = MORPHO_API_URL
    vault_1: str = ""
    vault_2: str = ""
    apy_diff_threshold: float = 0.0
    check_interval_seconds: int = 600
    alert_cooldown_seconds: int = 600


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    chain: ChainConfig = field(default_factory=ChainConfig)
    position: PositionConfig = field(default_factory=PositionConfig)
    vaults: VaultsConfig = field(default_factory=VaultsConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


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


def _as_bool(value: Any) -> bool:
    # interpolated values arrive as strings, e.g. enabled: "${POSITION_ENABLED}"
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _number(raw: dict[str, Any], key: str, default: float, cast: type) -> Any:
    """Read a numeric field; unset env references ("") fall back to default."""
    value = raw.get(key)
    if value is None or value == "":
        return cast(default)
    return cast(value)


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        name=raw.get("name", "base"),
        chain_id=_number(raw, "chain_id", 8453, int),
        rpc_endpoints=tuple(e for e in raw.get("rpc_endpoints", []) if e),
        rpc_timeout=_number(raw, "rpc_timeout", 30, int),
    )


def _build_position(raw: dict[str, Any]) -> PositionConfig:
    oracle_raw = raw.get("oracle", {})
    alert_raw = raw.get("alert", {})
    return PositionConfig(
        enabled=_as_bool(raw.get("enabled", False)),
        wallet_address=raw.get("wallet_address") or "",
        market_id=raw.get("market_id") or "",
        morpho_address=raw.get("morpho_address") or MORPHO_BLUE_ADDRESS,
        oracle=OracleConfig(
            source=oracle_raw.get("source", "market"),
            collateral_feed=oracle_raw.get("collateral_feed") or "",
            borrow_feed=oracle_raw.get("borrow_feed") or "",
        ),
        alert=PositionAlertConfig(
            policy=ThresholdPolicy(alert_raw.get("policy", "relative")),
            ltv_threshold=_number(alert_raw, "ltv_threshold", 0.9, float),
        ),
        check_interval_seconds=_number(raw, "check_interval_seconds", 300, int),
        alert_cooldown_seconds=_number(raw, "alert_cooldown_seconds", 360, int),
    )


def _build_vaults(raw: dict[str, Any]) -> VaultsConfig:
    return VaultsConfig(
        enabled=_as_bool(raw.get("enabled", False)),
        api_url=raw.get("api_url") or MORPHO_API_URL,
        vault_1=raw.get("vault_1") or "",
        vault_2=raw.get("vault_2") or "",
        apy_diff_threshold=_number(raw, "apy_diff_threshold", 0.0, float),
        check_interval_seconds=_number(raw, "check_interval_seconds", 600, int),
        alert_cooldown_seconds=_number(raw, "alert_cooldown_seconds", 600, int),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=_as_bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token") or "",
            log_bot_token=tg.get("log_bot_token") or "",
            chat_id=str(tg.get("chat_id") or ""),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
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

    try:
        cfg = AppConfig(
            chain=_build_chain(raw.get("chain", {})),
            position=_build_position(raw.get("position", {})),
            vaults=_build_vaults(raw.get("vaults", {})),
            notifications=_build_notifications(raw.get("notifications", {})),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration value: {e}") from e

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.position.enabled and not cfg.vaults.enabled:
        raise ValueError("At least one monitor (position or vaults) must be enabled")

    if cfg.position.enabled:
        _validate_position(cfg.position, cfg.chain)
    if cfg.vaults.enabled:
        _validate_vaults(cfg.vaults)


def _validate_position(position: PositionConfig, chain: ChainConfig) -> None:
    if not position.wallet_address:
        raise ValueError("Position monitor has no wallet_address")
    if not position.market_id:
        raise ValueError("Position monitor has no market_id")
    if not _MARKET_ID_RE.fullmatch(position.market_id):
        raise ValueError(
            f"market_id must be a 0x-prefixed 32-byte hex string: {position.market_id}"
        )
    if not chain.rpc_endpoints:
        raise ValueError("Position monitor requires at least one RPC endpoint")
    if position.oracle.source not in ORACLE_SOURCES:
        raise ValueError(f"Unknown oracle source '{position.oracle.source}'")
    if position.oracle.source == "feeds" and not (
        position.oracle.collateral_feed and position.oracle.borrow_feed
    ):
        raise ValueError(
            "Oracle source 'feeds' requires collateral_feed and borrow_feed"
        )
    if position.alert.ltv_threshold <= 0:
        raise ValueError("ltv_threshold must be positive")
    if position.check_interval_seconds <= 0:
        raise ValueError("Position check_interval_seconds must be positive")
    if position.alert_cooldown_seconds < 0:
        raise ValueError("Position alert_cooldown_seconds must not be negative")


def _validate_vaults(vaults: VaultsConfig) -> None:
    if not vaults.vault_1 or not vaults.vault_2:
        raise ValueError("Vault monitor requires vault_1 and vault_2 addresses")
    if vaults.vault_1.lower() == vaults.vault_2.lower():
        raise ValueError("vault_1 and vault_2 must be different vaults")
    if vaults.apy_diff_threshold < 0:
        raise ValueError("apy_diff_threshold must not be negative")
    if vaults.check_interval_seconds <= 0:
        raise ValueError("Vault check_interval_seconds must be positive")
    if vaults.alert_cooldown_seconds < 0:
        raise ValueError("Vault alert_cooldown_seconds must not be negative")

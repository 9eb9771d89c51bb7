"""
Configuration loading and validation for the swap risk dashboard.
"""

import os
from decimal import Decimal
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from swap_risk.exceptions import ConfigurationError, InvalidInput

from .slippage import validate_slippage_pct
from .types import FeeSchedule, RiskTierThresholds, SwapDirection

DEFAULT_RPC_URL_ENV = "FINEPOOL_RPC_URL"
DEFAULT_PRIVATE_KEY_ENV = "FINEPOOL_PRIVATE_KEY"
SEPOLIA_CHAIN_ID = 11155111

# Demo pool used when no chain is configured
DEMO_RESERVE0 = 101131
DEMO_RESERVE1 = 99493


class ConfigError(ConfigurationError):
    """Raised when config is invalid or missing required fields."""

    pass


class DashboardConfig:
    """
    Parsed and validated dashboard configuration.

    Attributes:
        rpc_url: HTTP(S) RPC endpoint (inline or from rpc_url_env)
        rpc_url_env: Environment variable holding the RPC URL
        chain_id: Expected chain id
        pool_address: FinePool contract address
        tokens: [token0, token1] dicts of {symbol, address, decimals}
        fees: Swap fee ratio charged by the pool
        max_slippage_pct: Default slippage tolerance for swaps
        risk_tiers: Price impact tier thresholds
        private_key_env: Environment variable holding the signer key
        receipt_timeout_sec: How long to wait for a transaction receipt
        paper: Paper ledger settings, or None to use the chain
        api: Web server settings
    """

    def __init__(self, config_dict: Dict[str, Any]):
        """
        Parse and validate config from dictionary.

        Args:
            config_dict: Loaded YAML config

        Raises:
            ConfigError: If required fields missing or invalid
        """
        self.paper: Optional[Dict[str, Any]] = self._parse_paper(config_dict.get("paper", {}))

        # RPC settings; optional for paper mode
        self.rpc_url_env: str = config_dict.get("rpc_url_env", DEFAULT_RPC_URL_ENV)
        self.rpc_url: Optional[str] = config_dict.get("rpc_url") or os.getenv(self.rpc_url_env)
        if not self.rpc_url and self.paper is None:
            raise ConfigError(
                f"Missing RPC URL: set 'rpc_url' or the {self.rpc_url_env} environment variable"
            )
        self.chain_id: int = int(config_dict.get("chain_id", SEPOLIA_CHAIN_ID))

        if self.paper is None:
            self.pool_address: str = self._get_required(config_dict, "pool_address", str)
        else:
            self.pool_address = config_dict.get("pool_address", "")

        self.tokens: List[Dict[str, Any]] = self._parse_tokens(
            config_dict.get("tokens", []), required=self.paper is None
        )

        # Fee ratio
        try:
            self.fees = FeeSchedule(
                int(config_dict.get("fee_numerator", 997)),
                int(config_dict.get("fee_denominator", 1000)),
            )
        except (TypeError, ValueError, ConfigurationError) as e:
            raise ConfigError(f"Invalid fee ratio: {e}") from e

        # Slippage tolerance
        try:
            self.max_slippage_pct: Decimal = validate_slippage_pct(
                config_dict.get("max_slippage_pct", "1.0")
            )
        except InvalidInput as e:
            raise ConfigError(f"Invalid max_slippage_pct: {e}") from e

        self.risk_tiers = self._parse_risk_tiers(config_dict.get("risk_tiers", {}))

        # Signing and confirmation
        self.private_key_env: str = config_dict.get("private_key_env", DEFAULT_PRIVATE_KEY_ENV)
        self.receipt_timeout_sec: int = int(config_dict.get("receipt_timeout_sec", 120))
        if self.receipt_timeout_sec <= 0:
            raise ConfigError("receipt_timeout_sec must be positive")

        api_raw = config_dict.get("api", {}) or {}
        self.api: Dict[str, Any] = {
            "host": api_raw.get("host", "127.0.0.1"),
            "port": int(api_raw.get("port", 8000)),
            "cors_origins": list(api_raw.get("cors_origins", ["http://localhost:3000"])),
        }

    @staticmethod
    def _get_required(d: Dict, key: str, expected_type: type) -> Any:
        """Get required config field with type validation."""
        if key not in d:
            raise ConfigError(f"Missing required config field: {key}")
        val = d[key]
        if not isinstance(val, expected_type):
            raise ConfigError(
                f"Config field '{key}' must be {expected_type.__name__}, got {type(val).__name__}"
            )
        return val

    @staticmethod
    def _parse_tokens(tokens_raw: Any, required: bool) -> List[Dict[str, Any]]:
        """Parse and validate the [token0, token1] list."""
        if not tokens_raw:
            if required:
                raise ConfigError("Missing required config field: tokens")
            return [
                {"symbol": "TKA", "address": "", "decimals": 0},
                {"symbol": "TKB", "address": "", "decimals": 0},
            ]

        if not isinstance(tokens_raw, list) or len(tokens_raw) != 2:
            raise ConfigError("tokens must be a list of exactly two entries (token0, token1)")

        tokens = []
        for i, info in enumerate(tokens_raw):
            if not isinstance(info, dict):
                raise ConfigError(f"Token {i} config must be a dict")
            if required and not info.get("address"):
                raise ConfigError(f"Token {i} missing 'address'")

            decimals = int(info.get("decimals", 18))
            if decimals < 0 or decimals > 36:
                raise ConfigError(f"Token {i} has invalid decimals: {decimals}")

            tokens.append(
                {
                    "symbol": info.get("symbol", f"TOKEN{i}"),
                    "address": info.get("address", ""),
                    "decimals": decimals,
                }
            )
        return tokens

    @staticmethod
    def _parse_risk_tiers(tiers_raw: Dict[str, Any]) -> RiskTierThresholds:
        """Parse risk tier thresholds, defaulting to 1% / 3% / 10%."""
        if not isinstance(tiers_raw, dict):
            raise ConfigError("risk_tiers must be a dict")
        try:
            return RiskTierThresholds(
                excellent=Decimal(str(tiers_raw.get("excellent", 1))),
                good=Decimal(str(tiers_raw.get("good", 3))),
                caution=Decimal(str(tiers_raw.get("caution", 10))),
            )
        except ConfigurationError as e:
            raise ConfigError(str(e)) from e

    @staticmethod
    def _parse_paper(paper_raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Parse paper ledger settings.

        Returns:
            Parsed config or None if not enabled
        """
        if not paper_raw or not paper_raw.get("enabled"):
            return None

        paper = {
            "reserve0": int(paper_raw.get("reserve0", DEMO_RESERVE0)),
            "reserve1": int(paper_raw.get("reserve1", DEMO_RESERVE1)),
            "total_supply": int(paper_raw.get("total_supply", 0)),
            "lp_balances": {
                str(k): int(v) for k, v in (paper_raw.get("lp_balances") or {}).items()
            },
            "account": paper_raw.get("account", "0x" + "0c" * 20),
        }
        if paper["reserve0"] < 0 or paper["reserve1"] < 0 or paper["total_supply"] < 0:
            raise ConfigError("paper reserves and total_supply must be non-negative")
        return paper

    @classmethod
    def demo(cls) -> "DashboardConfig":
        """Paper-mode config seeded with the dashboard's demo reserves."""
        return cls({"paper": {"enabled": True}})

    @property
    def is_paper(self) -> bool:
        return self.paper is not None

    @property
    def private_key(self) -> Optional[str]:
        """Signer key from the environment; None means read-only."""
        return os.getenv(self.private_key_env) or None

    def token(self, index: int) -> Dict[str, Any]:
        return self.tokens[index]

    def decimals_in(self, direction: SwapDirection) -> int:
        """Decimals of the token sold in a direction."""
        return self.tokens[direction.token_in_index]["decimals"]

    def decimals_out(self, direction: SwapDirection) -> int:
        return self.tokens[direction.token_out_index]["decimals"]


def load_config(config_path: str) -> DashboardConfig:
    """
    Load and validate config from YAML file.

    A .env file next to the working directory is loaded first so RPC URLs
    and keys can stay out of the YAML.

    Args:
        config_path: Path to config YAML file

    Returns:
        Validated DashboardConfig instance

    Raises:
        ConfigError: If config invalid or file not found
    """
    load_dotenv()

    if not os.path.exists(config_path):
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigError("Config file must contain a YAML dictionary")

    try:
        return DashboardConfig(config_dict)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid config value: {e}") from e

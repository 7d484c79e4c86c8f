import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from finance_dashboard.domain.enums import CreditBalanceSign

# Package defaults (bundled with code)
PACKAGE_CONFIG_DIR = Path(__file__).parent / "defaults"

# User configs (in project root, gitignored)
PROJECT_ROOT = Path(__file__).parents[3]
USER_CONFIG_DIR = PROJECT_ROOT / "config"

# Environment overrides
API_URL_ENV = "FINANCE_DASHBOARD_API_URL"
TOKEN_ENV = "FINANCE_DASHBOARD_TOKEN"

class ConfigLoader:
    """Load configuration with user overrides"""

    @staticmethod
    def load_config(config_name: str) -> Dict[str, Any]:
        """
        Load config with fallback: user config -> default config

        Args:
            config_name: Name of the config file (e.g., 'parsers.json')

        Raises:
            FileNotFoundError: If no config file was found

        Returns:
            Parsed JSON configuration
        """
        user_config_path = USER_CONFIG_DIR / config_name
        if user_config_path.exists():
            with open(user_config_path) as f:
                return json.load(f)

        default_config_path = PACKAGE_CONFIG_DIR / config_name
        if default_config_path.exists():
            with open(default_config_path) as f:
                return json.load(f)

        raise FileNotFoundError(
            f"Config file '{config_name}' not found in:\n"
            f" - {user_config_path}\n"
            f" - {default_config_path}"
        )

    @staticmethod
    def load_parsers_config():
        """Load parsers registry configuration"""
        return ConfigLoader.load_config('parsers.json')

    @staticmethod
    def load_dashboard_config():
        """Load API and dashboard configuration"""
        return ConfigLoader.load_config('dashboard.json')


@dataclass(frozen=True)
class DashboardSettings:
    """Typed view over dashboard.json plus environment overrides"""
    api_base_url: str = "http://localhost:8000/api"
    api_token: Optional[str] = None
    api_timeout: float = 10.0
    per_page: int = 50
    max_pages: Optional[int] = 1
    credit_balance_sign: CreditBalanceSign = CreditBalanceSign.NEGATIVE
    recent_transactions: int = 5

    @classmethod
    def load(
        cls,
        config: Optional[Dict[str, Any]] = None,
        environ: Optional[Dict[str, str]] = None,
    ) -> "DashboardSettings":
        """
        Build settings from config and environment.

        Args:
            config: Optional config dict. If None, loads from ConfigLoader.
            environ: Optional environment mapping, defaults to os.environ.

        Raises:
            ValueError: If credit_balance_sign isn't 'negative' or 'positive'
        """
        if config is None:
            config = ConfigLoader.load_dashboard_config()
        if environ is None:
            environ = dict(os.environ)

        api = config.get("api", {})
        defaults = cls()

        try:
            sign = CreditBalanceSign(config.get("credit_balance_sign", defaults.credit_balance_sign.value))
        except ValueError:
            raise ValueError(
                f"credit_balance_sign must be one of "
                f"{[s.value for s in CreditBalanceSign]}, "
                f"got {config.get('credit_balance_sign')!r}"
            )

        max_pages = api.get("max_pages", defaults.max_pages)

        return cls(
            api_base_url=environ.get(API_URL_ENV) or api.get("base_url", defaults.api_base_url),
            api_token=environ.get(TOKEN_ENV) or api.get("token"),
            api_timeout=float(api.get("timeout", defaults.api_timeout)),
            per_page=int(api.get("per_page", defaults.per_page)),
            max_pages=None if max_pages is None else int(max_pages),
            credit_balance_sign=sign,
            recent_transactions=int(config.get("recent_transactions", defaults.recent_transactions)),
        )

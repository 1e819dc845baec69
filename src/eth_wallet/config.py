"""Configuration system for the ETH wallet.

Settings come from an optional ``eth-wallet.yaml`` file (with ``${VAR}``
environment expansion) overlaid by environment variables such as
``ETH_RPC_URL`` and ``WALLET_ENCRYPTION_KEY``.  Secrets are held in
``SecretStr`` fields so they never leak through ``repr()`` or logs.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError

from eth_wallet.exceptions import ConfigError

CONFIG_FILENAME = "eth-wallet.yaml"
ENCRYPTION_KEY_SIZE = 32

# Environment variable -> settings field. Set variables win over the file.
ENV_OVERRIDES: dict[str, str] = {
    "ETH_RPC_URL": "rpc_url",
    "ETHERSCAN_API_KEY": "etherscan_api_key",
    "ETHERSCAN_API_URL": "explorer_api_url",
    "WALLET_ENCRYPTION_KEY": "encryption_key",
    "WALLET_PRIVATE_KEY": "private_key",
    "ETH_WALLET_DATA_DIR": "data_dir",
}

_SECRET_FIELDS = {"etherscan_api_key", "encryption_key", "private_key"}


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str, environ: Mapping[str, str]) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        return environ.get(match.group(1), match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object, environ: Mapping[str, str]) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj, environ)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v, environ) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item, environ) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 model
# ---------------------------------------------------------------------------


class WalletSettings(BaseModel):
    """Everything the wallet needs to reach the chain, explorer and store."""

    rpc_url: str = ""
    etherscan_api_key: SecretStr = SecretStr("")
    explorer_api_url: str = "https://api.etherscan.io/api"
    encryption_key: SecretStr = SecretStr("")
    private_key: SecretStr = SecretStr("")
    data_dir: Path = Field(default_factory=Path.cwd)
    wallets_file: str = "wallets.json"
    default_wallet_file: str = "default_wallet.txt"
    http_timeout: float = 30.0

    @property
    def wallets_path(self) -> Path:
        return self.data_dir / self.wallets_file

    @property
    def default_wallet_path(self) -> Path:
        return self.data_dir / self.default_wallet_file

    def encryption_key_bytes(self) -> Optional[bytes]:
        """Return the 32-byte store encryption key, or ``None`` if unset.

        Raises
        ------
        ConfigError
            If a key is configured but is not exactly 32 bytes long.
        """
        raw = self.encryption_key.get_secret_value()
        if not raw:
            return None
        key = raw.encode("utf-8")
        if len(key) != ENCRYPTION_KEY_SIZE:
            raise ConfigError(
                "encryption key must be exactly 32 bytes "
                "(set WALLET_ENCRYPTION_KEY environment variable)"
            )
        return key


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> WalletSettings:
    """Build :class:`WalletSettings` from an optional YAML file and the environment.

    Parameters
    ----------
    path:
        Explicit config file.  It must exist.  When omitted,
        ``eth-wallet.yaml`` in the data directory is used if present.
    environ:
        Mapping used for overrides and ``${VAR}`` expansion.  Defaults to
        ``os.environ``.

    Raises
    ------
    ConfigError
        If the file is missing, unreadable, not a mapping, or fails validation.
    """
    env = os.environ if environ is None else environ

    if path is None:
        candidate = Path(env.get("ETH_WALLET_DATA_DIR") or Path.cwd()) / CONFIG_FILENAME
        if candidate.is_file():
            path = candidate
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    data: dict = {}
    if path is not None:
        try:
            raw_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Failed to read config {path}: {exc}") from exc
        if not isinstance(raw_data, dict):
            raise ConfigError(f"Config {path} must contain a mapping")
        data = _expand_env_recursive(raw_data, env)

    for var, field_name in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[field_name] = value

    try:
        return WalletSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def save_settings(settings: WalletSettings, path: Path) -> None:
    """Serialize non-secret settings to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = settings.model_dump(mode="json", exclude=_SECRET_FIELDS)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)

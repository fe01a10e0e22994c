"""Client configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

import yaml

DEFAULT_CONFIG_PATH = "runtime-config.yaml"
CONFIG_PATH_ENV_VAR = "USERMANAGER_CONFIG"
PASSWORD_ENV_VAR = "ROUTEROS_PASSWORD"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class ClientSettings:
    router_base_url: str = ""
    router_username: str = ""
    router_password: str = ""
    router_password_file: str = ""
    router_timeout_seconds: float = 10.0
    router_verify_tls: bool = True
    scale_cap_by_billing_period: bool = False
    log_level: str = "INFO"
    runtime_config_path: str = DEFAULT_CONFIG_PATH

    @classmethod
    def from_yaml(cls, runtime_config_path: str = DEFAULT_CONFIG_PATH) -> ClientSettings:
        normalized_path = runtime_config_path.strip() or DEFAULT_CONFIG_PATH
        config = _load_runtime_config(normalized_path)

        router_cfg = cast(dict[str, Any], config.get("router", {}))
        provisioning_cfg = cast(dict[str, Any], config.get("provisioning", {}))
        logging_cfg = cast(dict[str, Any], config.get("logging", {}))

        return cls(
            router_base_url=str(router_cfg.get("base_url", "")).strip(),
            router_username=str(router_cfg.get("username", "")).strip(),
            router_password=os.environ.get(
                PASSWORD_ENV_VAR, str(router_cfg.get("password", ""))
            ),
            router_password_file=str(router_cfg.get("password_file", "")),
            router_timeout_seconds=max(
                1.0, float(router_cfg.get("timeout_seconds", 10.0))
            ),
            router_verify_tls=bool(router_cfg.get("verify_tls", True)),
            scale_cap_by_billing_period=bool(
                provisioning_cfg.get("scale_cap_by_billing_period", False)
            ),
            log_level=_resolve_log_level(logging_cfg),
            runtime_config_path=normalized_path,
        )

    @classmethod
    def from_env(cls) -> ClientSettings:
        return cls.from_yaml(os.environ.get(CONFIG_PATH_ENV_VAR, DEFAULT_CONFIG_PATH))


def _load_runtime_config(runtime_config_path: str) -> dict[str, Any]:
    path = Path(runtime_config_path)
    if not path.exists() or not path.is_file():
        return {}

    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(parsed, dict):
        return parsed
    return {}


def _resolve_log_level(logging_cfg: dict[str, Any]) -> str:
    level = str(logging_cfg.get("level", "INFO")).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(
            f"unsupported logging.level in runtime config: {level!r}; "
            f"expected one of {', '.join(_LOG_LEVELS)}"
        )
    return level


@lru_cache(maxsize=1)
def get_settings() -> ClientSettings:
    return ClientSettings.from_env()

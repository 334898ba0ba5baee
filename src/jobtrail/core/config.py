from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_ESCALATION_THRESHOLD = 0.7


class ConfigError(RuntimeError):
    pass


@dataclass
class DetectionSettings:
    """What the detection pipeline needs from the settings source."""

    remote_endpoint: str = ""
    remote_enabled: bool = True
    escalation_threshold: float = DEFAULT_ESCALATION_THRESHOLD

    @property
    def remote_configured(self) -> bool:
        return bool(self.remote_enabled and self.remote_endpoint.strip())


def _section(cfg: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = cfg.get(key)
    if value is None:
        value = {}
        cfg[key] = value
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{key}' must be a mapping")
    return value


def load_config(path: str | Path = "config.yaml") -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigError(
            f"Config file not found: {p.resolve()}\n\nTip: copy config.example.yaml -> config.yaml"
        )
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping")
    validate_config(data)
    return data


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    # Forgiving: every key has a default so an empty file is a valid local-only setup.
    remote = _section(cfg, "remote")
    remote.setdefault("endpoint", "")
    remote.setdefault("enabled", True)
    remote.setdefault("timeout_sec", 20)
    remote.setdefault("retries", 0)
    remote["endpoint"] = str(remote.get("endpoint") or "").strip()

    escalation = _section(cfg, "escalation")
    escalation.setdefault("threshold", DEFAULT_ESCALATION_THRESHOLD)
    try:
        threshold = float(escalation["threshold"])
    except (TypeError, ValueError) as exc:
        raise ConfigError("escalation.threshold must be a number") from exc
    if not 0.0 <= threshold <= 1.0:
        raise ConfigError("escalation.threshold must be within [0, 1]")
    escalation["threshold"] = threshold

    store = _section(cfg, "store")
    store.setdefault("path", "state/applications.db")

    proxy = _section(cfg, "proxy")
    proxy.setdefault("host", "127.0.0.1")
    proxy.setdefault("port", 8787)
    llm = _section(proxy, "llm")
    llm.setdefault("provider", "openai")
    llm.setdefault("model", "gpt-4o-mini")
    llm.setdefault("temperature", 0)
    llm.setdefault("timeout_sec", 45)
    llm.setdefault("fallback_providers", [])
    llm.setdefault("provider_options", {})
    llm["provider"] = str(llm.get("provider") or "").strip().lower()
    if not llm["provider"]:
        raise ConfigError("proxy.llm.provider must not be empty")

    runtime = _section(cfg, "runtime")
    runtime.setdefault("env", "dev")
    runtime.setdefault("log_level", "INFO")
    runtime.setdefault("http_timeout_sec", 20)
    runtime.setdefault("http_retries", 3)
    runtime.setdefault("user_agent", "jobtrail/0.1")
    return cfg


def detection_settings(cfg: Dict[str, Any]) -> DetectionSettings:
    remote = cfg.get("remote") or {}
    escalation = cfg.get("escalation") or {}
    return DetectionSettings(
        remote_endpoint=str(remote.get("endpoint") or ""),
        remote_enabled=bool(remote.get("enabled", True)),
        escalation_threshold=float(
            escalation.get("threshold", DEFAULT_ESCALATION_THRESHOLD)
        ),
    )

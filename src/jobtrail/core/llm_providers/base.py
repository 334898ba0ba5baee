from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Tuple

SYSTEM_PROMPT = (
    "You extract job application details from web page text. "
    "Output a single JSON object only, with no extra text."
)


class ProviderError(RuntimeError):
    """Upstream model call failed; ``status`` is the upstream HTTP status when known."""

    def __init__(self, message: str, *, status: Optional[int] = None, details: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.details = details or message


def usage_from(u: Any, *, input_key: str, output_key: str, total_key: str) -> Dict[str, int]:
    if not u:
        return {}

    def _get(key: str) -> int:
        value = getattr(u, key, None)
        if value is None and isinstance(u, dict):
            value = u.get(key)
        return int(value or 0)

    return {"input": _get(input_key), "output": _get(output_key), "total": _get(total_key)}


class ProviderInterface(Protocol):
    name: str

    def ready(self, cfg: Dict[str, Any]) -> bool: ...

    def call_json(
        self,
        *,
        model: str,
        temperature: float,
        timeout_sec: int,
        user_prompt: str,
        response_schema: Optional[Dict[str, Any]],
        cfg: Dict[str, Any],
    ) -> Tuple[str, Dict[str, int]]: ...

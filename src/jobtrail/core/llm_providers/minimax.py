from __future__ import annotations

import os
from typing import Any, Dict, Optional, Tuple

import requests

from .base import SYSTEM_PROMPT, ProviderError, ProviderInterface, usage_from


class MiniMaxProvider(ProviderInterface):
    name = "minimax"

    def _api_key(self, cfg: Dict[str, Any]) -> str:
        return os.getenv(cfg.get("api_key_env", "MINIMAX_API_KEY"), "")

    def ready(self, cfg: Dict[str, Any]) -> bool:
        return bool(self._api_key(cfg))

    def call_json(
        self,
        *,
        model: str,
        temperature: float,
        timeout_sec: int,
        user_prompt: str,
        response_schema: Optional[Dict[str, Any]],
        cfg: Dict[str, Any],
    ) -> Tuple[str, Dict[str, int]]:
        api_base = (cfg.get("api_base") or "https://api.minimaxi.com/v1").rstrip("/")
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": float(temperature),
        }
        if cfg.get("use_response_format", True):
            payload["response_format"] = {"type": "json_object"}
        headers = {
            "Authorization": f"Bearer {self._api_key(cfg)}",
            "Content-Type": "application/json",
        }

        try:
            resp = requests.post(
                f"{api_base}/chat/completions", headers=headers, json=payload, timeout=timeout_sec
            )
        except requests.RequestException as exc:
            raise ProviderError(f"MiniMax transport error: {type(exc).__name__}", details=str(exc)) from exc
        if resp.status_code >= 400:
            raise ProviderError(
                f"MiniMax HTTP {resp.status_code}", status=resp.status_code, details=resp.text
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderError("MiniMax returned a non-JSON envelope", details=resp.text) from exc
        if not isinstance(data, dict):
            raise ProviderError("MiniMax response is not an object", details=resp.text)
        choices = data.get("choices") or []
        first = choices[0] if isinstance(choices, list) and choices else None
        if not isinstance(first, dict):
            raise ProviderError("MiniMax response missing choices", details=resp.text)
        message = first.get("message")
        content = (message.get("content") if isinstance(message, dict) else "") or ""
        usage = usage_from(
            data.get("usage"),
            input_key="prompt_tokens",
            output_key="completion_tokens",
            total_key="total_tokens",
        )
        return content.strip(), usage

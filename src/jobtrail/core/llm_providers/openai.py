from __future__ import annotations

import os
from typing import Any, Dict, Optional, Tuple

from .base import SYSTEM_PROMPT, ProviderError, ProviderInterface, usage_from


class OpenAIProvider(ProviderInterface):
    name = "openai"

    def _api_key(self, cfg: Dict[str, Any]) -> str:
        return os.getenv(cfg.get("api_key_env", "OPENAI_API_KEY"), "")

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
        from openai import APIStatusError, OpenAI, OpenAIError

        api_base = cfg.get("api_base") or None
        client = OpenAI(api_key=self._api_key(cfg), base_url=api_base)

        kwargs: Dict[str, Any] = dict(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            timeout=timeout_sec,
        )
        if cfg.get("use_response_format", True):
            kwargs["response_format"] = {"type": "json_object"}

        try:
            resp = client.chat.completions.create(**kwargs)
        except APIStatusError as exc:
            raise ProviderError(
                f"OpenAI HTTP {exc.status_code}", status=exc.status_code, details=str(exc)
            ) from exc
        except OpenAIError as exc:
            raise ProviderError(f"OpenAI call failed: {type(exc).__name__}", details=str(exc)) from exc

        content = resp.choices[0].message.content or ""
        usage = usage_from(
            getattr(resp, "usage", None),
            input_key="prompt_tokens",
            output_key="completion_tokens",
            total_key="total_tokens",
        )
        return content.strip(), usage

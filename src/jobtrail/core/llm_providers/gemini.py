from __future__ import annotations

import os
from typing import Any, Dict, Optional, Tuple

import httpx

from .base import SYSTEM_PROMPT, ProviderError, ProviderInterface, usage_from

DEFAULT_KEY_ENVS = ["GEMINI_API_KEY", "GOOGLE_API_KEY"]


class GeminiProvider(ProviderInterface):
    name = "gemini"

    def _api_key(self, cfg: Dict[str, Any]) -> str:
        for env in cfg.get("api_key_envs") or DEFAULT_KEY_ENVS:
            v = os.getenv(env)
            if v:
                return v
        return ""

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
        from google import genai
        from google.genai import errors as genai_errors

        client = genai.Client(
            api_key=self._api_key(cfg),
            http_options={"timeout": int(timeout_sec) * 1000},
        )
        config: Dict[str, Any] = {
            "temperature": float(temperature),
            "system_instruction": SYSTEM_PROMPT,
            "response_mime_type": "application/json",
        }
        if response_schema and cfg.get("use_schema", True):
            config["response_json_schema"] = response_schema

        try:
            resp = client.models.generate_content(model=model, contents=user_prompt, config=config)
        except genai_errors.APIError as exc:
            raise ProviderError(
                f"Gemini HTTP {exc.code}", status=exc.code, details=str(exc)
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Gemini call failed: {type(exc).__name__}", details=str(exc)) from exc

        content = getattr(resp, "text", "") or ""
        usage = usage_from(
            getattr(resp, "usage_metadata", None),
            input_key="prompt_token_count",
            output_key="candidates_token_count",
            total_key="total_token_count",
        )
        return content.strip(), usage

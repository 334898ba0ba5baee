from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .base import ProviderInterface
from .gemini import GeminiProvider
from .minimax import MiniMaxProvider
from .openai import OpenAIProvider

_PROVIDERS: Dict[str, ProviderInterface] = {
    "openai": OpenAIProvider(),
    "gemini": GeminiProvider(),
    "minimax": MiniMaxProvider(),
}


def get_provider(name: str) -> Optional[ProviderInterface]:
    if not name:
        return None
    return _PROVIDERS.get(name.lower())


def provider_chain(primary: str, fallback: Iterable[str] = ()) -> List[str]:
    """Primary first, then fallbacks, de-duplicated and lower-cased."""
    names = [primary] + list(fallback or [])
    chain = [n.lower() for n in names if n]
    return list(dict.fromkeys(chain))

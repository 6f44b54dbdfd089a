import os

import requests
from dotenv import load_dotenv

from exceptions import NarrativeServiceError

load_dotenv()

# ── Narrative generation options (from .env) ──
NARRATIVE_MODEL = os.getenv("NARRATIVE_MODEL", "claude-sonnet-4-20250514")
NARRATIVE_MAX_TOKENS = int(os.getenv("NARRATIVE_MAX_TOKENS", "3000"))
NARRATIVE_TEMPERATURE = float(os.getenv("NARRATIVE_TEMPERATURE", "0.0"))


def extract_text(data: dict) -> str:
    """Pull the narrative text out of a proxy response: content[].text first, then text."""
    content = data.get("content")
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict) and block.get("type", "text") == "text" and block.get("text"):
                return block["text"]
    if data.get("text"):
        return data["text"]
    if data.get("error"):
        raise NarrativeServiceError(f"Proxy error: {data['error']}")
    raise NarrativeServiceError("No text content in narrative response")


class NarrativeClient:
    def __init__(self, base_url: str = None, model: str = None, timeout: float = None):
        self.base_url = (base_url or os.getenv("NARRATIVE_PROXY_URL", "")).rstrip("/")
        self.model = model or NARRATIVE_MODEL
        self.timeout = timeout or float(os.getenv("NARRATIVE_TIMEOUT", "60"))

    def complete(self, prompt: str, system: str = None, max_tokens: int = None) -> str:
        payload = {
            "prompt": prompt,
            "model": self.model,
            "max_tokens": max_tokens or NARRATIVE_MAX_TOKENS,
            "temperature": NARRATIVE_TEMPERATURE,
        }
        if system:
            payload["systemPrompt"] = system
        r = requests.post(f"{self.base_url}/api/analyze", json=payload, timeout=self.timeout)
        r.raise_for_status()
        return extract_text(r.json())


def default_client() -> NarrativeClient | None:
    """A client for the configured proxy, or None when no proxy is configured."""
    if not os.getenv("NARRATIVE_PROXY_URL"):
        return None
    return NarrativeClient()

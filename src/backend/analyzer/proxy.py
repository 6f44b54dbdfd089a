"""Server-side forwarding of narrative requests; the provider key never leaves this process."""
import logging
import os

import requests
from dotenv import load_dotenv

from models import ProxyRequest

load_dotenv()

logger = logging.getLogger(__name__)

# ── configurable via .env ──
ANTHROPIC_API_URL = os.getenv("ANTHROPIC_API_URL", "https://api.anthropic.com/v1/messages")
ANTHROPIC_VERSION = os.getenv("ANTHROPIC_VERSION", "2023-06-01")
DEFAULT_MODEL = os.getenv("NARRATIVE_MODEL", "claude-sonnet-4-20250514")
ALLOWED_MODELS = [m.strip() for m in os.getenv("ALLOWED_MODELS", DEFAULT_MODEL).split(",") if m.strip()]
DEFAULT_MAX_TOKENS = 4000
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "60"))


def build_upstream_payload(req: ProxyRequest) -> dict:
    payload = {
        "model": req.model or DEFAULT_MODEL,
        "max_tokens": req.max_tokens or DEFAULT_MAX_TOKENS,
        "messages": [{"role": "user", "content": req.prompt}],
    }
    if req.system_prompt:
        payload["system"] = req.system_prompt
    if req.temperature is not None:
        payload["temperature"] = req.temperature
    return payload


def forward(req: ProxyRequest) -> tuple[int, dict]:
    """Return (status code, JSON body) for the caller: {text, content} or {error, details?}."""
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        return 500, {"error": "ANTHROPIC_API_KEY is not configured on the server."}
    if req.model and req.model not in ALLOWED_MODELS:
        return 400, {"error": f"Model not allowed: {req.model}"}

    headers = {
        "Content-Type": "application/json",
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_VERSION,
    }
    try:
        r = requests.post(ANTHROPIC_API_URL, json=build_upstream_payload(req), headers=headers,
                          timeout=UPSTREAM_TIMEOUT)
    except requests.RequestException as e:
        logger.error("Failed to reach narrative provider: %s", e)
        return 502, {"error": "Failed to reach Anthropic API", "details": str(e)}

    if not r.ok:
        logger.error("Narrative provider returned %s", r.status_code)
        return r.status_code, {"error": f"Anthropic API error: {r.status_code}", "details": r.text}

    try:
        content = r.json().get("content") or []
    except ValueError as e:
        logger.error("Narrative provider returned a non-JSON body: %s", e)
        return 502, {"error": "Invalid response from Anthropic API", "details": str(e)}
    text = next((c.get("text", "") for c in content if c.get("type") == "text"), "")
    return 200, {"text": text, "content": content}

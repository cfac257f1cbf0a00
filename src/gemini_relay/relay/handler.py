"""Relay handler: validate a client prompt, call Gemini with retry, trim the reply.

One call to ``handle`` produces exactly one ``RelayResult``. Rate limiting (429)
is retried with exponential backoff; other upstream failures are re-attempted
immediately until the attempt cap is reached.
"""
from __future__ import annotations
import json
import logging
import random
import time
from typing import Any, Callable

import httpx

from gemini_relay.common.prompts import build_upstream_payload
from gemini_relay.common.schema import RelayResult, Source
from gemini_relay.relay.config import Settings, get_settings

LOGGER = logging.getLogger("gemini_relay.relay.handler")

MAX_ATTEMPTS = 3
BASE_DELAY_MS = 1000
MAX_JITTER_MS = 500


class UpstreamError(Exception):
    """Gemini answered with a non-success status other than 429."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"External API failed with status: {status_code}.")
        self.status_code = status_code


def backoff_delay_s(attempt: int, rng: Any = random) -> float:
    """Seconds to wait after a 429 on ``attempt`` (0-based)."""
    delay_ms = (2 ** attempt) * BASE_DELAY_MS + rng.random() * MAX_JITTER_MS
    return delay_ms / 1000.0


def parse_prompt(body: bytes | str | None) -> tuple[str | None, RelayResult | None]:
    """Return ``(prompt, None)`` for a usable body, else ``(None, error_result)``."""
    if body is None:
        return None, RelayResult.error(400, "Invalid JSON body received.")
    try:
        payload = json.loads(body)
    except (ValueError, RecursionError):
        return None, RelayResult.error(400, "Invalid JSON body received.")

    prompt = payload.get("prompt") if isinstance(payload, dict) else None
    if not isinstance(prompt, str) or not prompt:
        return None, RelayResult.error(400, "Missing 'prompt' in request body.")
    return prompt, None


def _first_text(candidate: Any) -> str | None:
    try:
        text = candidate["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text else None


def extract_sources(candidate: dict[str, Any]) -> list[Source]:
    """Keep grounding attributions whose web entry has both a URI and a title."""
    metadata = candidate.get("groundingMetadata") or {}
    attributions = metadata.get("groundingAttributions") if isinstance(metadata, dict) else None
    if not isinstance(attributions, list):
        attributions = []
    sources: list[Source] = []
    for attribution in attributions:
        web = attribution.get("web") if isinstance(attribution, dict) else None
        if not isinstance(web, dict):
            continue
        uri, title = web.get("uri"), web.get("title")
        if isinstance(uri, str) and uri and isinstance(title, str) and title:
            sources.append(Source(uri=uri, title=title))
    return sources


def shape_response(data: Any) -> RelayResult:
    """Trim a Gemini generateContent reply down to ``{text, sources}``."""
    candidates = data.get("candidates") if isinstance(data, dict) else None
    candidate = candidates[0] if isinstance(candidates, list) and candidates else None
    text = _first_text(candidate)
    if text is None:
        LOGGER.error("Gemini returned no usable text in the first candidate")
        return RelayResult.error(500, "API returned an empty or malformed response.")
    return RelayResult.ok(text, extract_sources(candidate))


def _call_with_retry(
    client: httpx.Client,
    settings: Settings,
    payload: dict[str, Any],
    sleep: Callable[[float], None],
    rng: Any,
) -> RelayResult:
    for attempt in range(MAX_ATTEMPTS):
        last_attempt = attempt == MAX_ATTEMPTS - 1
        try:
            r = client.post(
                settings.generate_url,
                params={"key": settings.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
            )

            if r.status_code == 429:
                if last_attempt:
                    LOGGER.warning("Gemini rate limit persisted after %d attempts", MAX_ATTEMPTS)
                    return RelayResult.error(429, "Rate limit exceeded on external API.")
                delay = backoff_delay_s(attempt, rng)
                LOGGER.info("Gemini rate limited on attempt %d; retrying in %.2fs", attempt + 1, delay)
                sleep(delay)
                continue

            if not r.is_success:
                LOGGER.error("External API failed: Status %s. Response: %s", r.status_code, r.text)
                raise UpstreamError(r.status_code)

            return shape_response(r.json())
        except (httpx.HTTPError, ValueError, RecursionError, UpstreamError) as e:
            LOGGER.error("Gemini relay error on attempt %d: %s", attempt + 1, e)
    return RelayResult.error(
        500,
        f"Internal server error after {MAX_ATTEMPTS} attempts. "
        "Check server logs for details.",
    )


def handle(
    method: str,
    body: bytes | str | None,
    *,
    settings: Settings | None = None,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
    rng: Any = random,
) -> RelayResult:
    """
    Relay one client prompt to Gemini.

    Args:
        method: HTTP method of the inbound request.
        body: Raw inbound body, expected to be JSON ``{"prompt": "..."}``.
        settings: Relay settings; defaults to the process-wide settings.
        client: httpx client to send with; one is opened and closed when omitted.
        sleep: Backoff wait, called with seconds.
        rng: Jitter source exposing ``random()``.

    Returns:
        The terminal result: 200 ``{text, sources}`` or an error ``{message}``.
    """
    if method.upper() != "POST":
        return RelayResult.error(405, "Method Not Allowed. Use POST.")

    settings = settings or get_settings()
    if not settings.api_key:
        LOGGER.error("GEMINI_API_KEY environment variable is not set")
        return RelayResult.error(
            503,
            "Server configuration error: GEMINI_API_KEY is missing. "
            "Please set it in the server environment.",
        )

    prompt, err = parse_prompt(body)
    if err is not None:
        return err

    payload = build_upstream_payload(prompt)
    if client is not None:
        return _call_with_retry(client, settings, payload, sleep, rng)
    with httpx.Client(timeout=settings.timeout_s) as owned:
        return _call_with_retry(owned, settings, payload, sleep, rng)

"""System instruction and upstream payload helpers."""
from __future__ import annotations
from typing import Any

SYSTEM_INSTRUCTION = (
    "You are a helpful and knowledgeable guide on Islamic principles and services. "
    "Answer the user's query concisely and accurately based on the most current "
    "information available, using markdown for formatting."
)


def build_upstream_payload(prompt: str) -> dict[str, Any]:
    """
    Wrap a user prompt into a Gemini generateContent request.

    Args:
        prompt: User prompt text. It only ever fills the user content block.

    Returns:
        Request body with the fixed system instruction and Google Search grounding.
    """
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "tools": [{"google_search": {}}],
        "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
    }

"""Prompt normalization for URL-embedded and size-limited upstream calls."""

from __future__ import annotations

import re
from urllib.parse import quote

IMAGE_PROMPT_THRESHOLD = 1000
IMAGE_URL_PROMPT_LIMIT = 500
CLAUSE_COUNT = 5
MIN_CLAUSE_EXTRACT_LENGTH = 100
IMAGE_RETRY_LENGTHS = (300, 200, 100)
AUDIO_TEXT_LIMIT = 500
CAPTION_PROMPT_LIMIT = 800
ELLIPSIS = "..."

_CLAUSE_SPLIT = re.compile(r"[,.!?]")


def truncate(text: str, limit: int, marker: str = "") -> str:
    """Cut text to limit characters, appending marker only when cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + marker


def extract_clauses(text: str, count: int = CLAUSE_COUNT) -> str:
    """Join the first clause-delimited segments of text."""
    clauses = [part.strip() for part in _CLAUSE_SPLIT.split(text)]
    return ", ".join([part for part in clauses if part][:count])


def normalize_image_prompt(prompt: str) -> str:
    """Bring an image prompt under IMAGE_PROMPT_THRESHOLD.

    Prompts within the threshold pass through unchanged. Longer prompts keep
    their leading clauses, which usually carry subject and style; when that
    extraction degenerates to a short fragment the prompt is hard-truncated.
    """
    if len(prompt) <= IMAGE_PROMPT_THRESHOLD:
        return prompt
    extracted = extract_clauses(prompt)
    if len(extracted) > MIN_CLAUSE_EXTRACT_LENGTH:
        return truncate(extracted, IMAGE_PROMPT_THRESHOLD)
    return truncate(prompt, IMAGE_RETRY_LENGTHS[0])


def image_prompt_candidates(prompt: str) -> list[str]:
    """Ordered prompts for the image retry chain, longest first."""
    normalized = normalize_image_prompt(prompt)
    candidates = [normalized]
    for limit in IMAGE_RETRY_LENGTHS[1:]:
        shortened = truncate(normalized, limit)
        if shortened not in candidates:
            candidates.append(shortened)
    return candidates


def limit_audio_text(text: str) -> str:
    return truncate(text, AUDIO_TEXT_LIMIT, ELLIPSIS)


def caption_prompt(prompt: str) -> str:
    return truncate(prompt, CAPTION_PROMPT_LIMIT, ELLIPSIS)


def encode_path_segment(text: str) -> str:
    """Percent-encode text twice for use as a URL path segment.

    The upstream gateway decodes the path once before routing, so a single
    encoding would let reserved characters such as ``/`` and ``?`` split the
    prompt.
    """
    return quote(quote(text, safe=""), safe="")


def clean_argument(text: str | None) -> str:
    return (text or "").strip()

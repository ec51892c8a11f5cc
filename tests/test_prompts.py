from __future__ import annotations

from urllib.parse import unquote

from pollinations_bot.prompts import (
    IMAGE_PROMPT_THRESHOLD,
    caption_prompt,
    encode_path_segment,
    extract_clauses,
    image_prompt_candidates,
    limit_audio_text,
    normalize_image_prompt,
)


def test_short_prompt_passes_unchanged() -> None:
    prompt = "A lighthouse at dusk, oil painting"
    assert normalize_image_prompt(prompt) == prompt


def test_prompt_at_threshold_passes_unchanged() -> None:
    prompt = "x" * IMAGE_PROMPT_THRESHOLD
    assert normalize_image_prompt(prompt) == prompt


def test_long_prompt_keeps_leading_clauses() -> None:
    clauses = [f"clause number {index} with some descriptive words" for index in range(40)]
    prompt = ", ".join(clauses)
    assert len(prompt) > IMAGE_PROMPT_THRESHOLD

    normalized = normalize_image_prompt(prompt)

    assert normalized == ", ".join(clauses[:5])


def test_long_prompt_with_tiny_clauses_is_hard_truncated() -> None:
    prompt = "a." * 1050
    normalized = normalize_image_prompt(prompt)
    assert normalized == prompt[:300]


def test_long_prompt_without_delimiters_is_capped() -> None:
    prompt = "a" * 2100
    assert normalize_image_prompt(prompt) == "a" * IMAGE_PROMPT_THRESHOLD


def test_normalization_is_bounded_and_idempotent() -> None:
    samples = [
        "",
        "cat",
        "word " * 600,
        "a." * 1050,
        ", ".join(["long clause " * 30] * 8),
        "Sunset! Ocean? Waves. Birds, clouds" * 80,
    ]
    for prompt in samples:
        normalized = normalize_image_prompt(prompt)
        assert len(normalized) <= IMAGE_PROMPT_THRESHOLD
        assert normalize_image_prompt(normalized) == normalized


def test_extract_clauses_drops_empty_segments() -> None:
    assert extract_clauses("one,, two. ! three? four, five, six") == "one, two, three, four, five"


def test_candidates_shrink_and_skip_duplicates() -> None:
    prompt = "a." * 1050
    candidates = image_prompt_candidates(prompt)
    assert [len(item) for item in candidates] == [300, 200, 100]
    assert image_prompt_candidates("cat") == ["cat"]
    assert [len(item) for item in image_prompt_candidates("b" * 150)] == [150, 100]


def test_audio_text_is_truncated_with_marker() -> None:
    assert limit_audio_text("hello") == "hello"
    limited = limit_audio_text("z" * 600)
    assert len(limited) == 503
    assert limited.endswith("...")


def test_caption_prompt_limit() -> None:
    assert caption_prompt("p" * 800) == "p" * 800
    assert caption_prompt("p" * 801) == "p" * 800 + "..."


def test_path_segment_is_encoded_twice() -> None:
    encoded = encode_path_segment("a/b c?")
    assert encoded == "a%252Fb%2520c%253F"
    assert "/" not in encoded
    assert unquote(unquote(encoded)) == "a/b c?"

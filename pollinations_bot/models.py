"""Value types exchanged between the router and the upstream client."""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from typing import List, Optional

SEED_UPPER_BOUND = 1_000_000_000


def random_seed() -> int:
    return random.randrange(SEED_UPPER_BOUND)


@dataclass(frozen=True)
class ImageRequest:
    """One image generation call.

    The seed is always resolved at construction so repeated prompts are not
    served from the upstream cache.
    """

    prompt: str
    model: str = "flux"
    width: int = 1024
    height: int = 1024
    seed: int = field(default_factory=random_seed)
    enhance: bool = False
    private: bool = False
    safe: bool = True
    timeout: Optional[float] = None

    def with_changes(self, **changes: object) -> "ImageRequest":
        return replace(self, **changes)


@dataclass(frozen=True)
class AudioRequest:
    text: str
    voice: str = "alloy"
    model: str = "openai-audio"
    timeout: Optional[float] = None


@dataclass
class ImageResult:
    data: bytes
    prompt: str
    model: str
    width: int
    height: int
    used_alternative_model: bool = False
    used_shortened_prompt: bool = False


@dataclass
class TextModelInfo:
    model: str
    type: str = "text"
    description: str = ""
    vision: bool = False
    reasoning: bool = False
    censored: bool = False
    voices: List[str] = field(default_factory=list)


DEFAULT_IMAGE_MODELS = [
    "flux",
    "sdxl",
    "pixart",
    "pixart-anime",
    "pixart-lcm",
    "dalle",
    "kandinsky",
]
DEFAULT_VOICES = ["alloy", "echo", "fable", "onyx", "nova", "shimmer"]


def default_text_models() -> list[TextModelInfo]:
    return [
        TextModelInfo(model="openai"),
        TextModelInfo(model="mistral"),
        TextModelInfo(model="gemini"),
        TextModelInfo(model="llama"),
        TextModelInfo(model="openai-audio", type="audio", voices=list(DEFAULT_VOICES)),
    ]

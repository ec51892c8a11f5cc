"""Pollinations API client with fallback chains for flaky endpoints."""

from __future__ import annotations

import base64
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple, TypeVar

import httpx

from pollinations_bot.config import DEFAULT_IMAGE_API, DEFAULT_TEXT_API, UpstreamTimeouts
from pollinations_bot.models import (
    DEFAULT_IMAGE_MODELS,
    DEFAULT_VOICES,
    AudioRequest,
    ImageRequest,
    ImageResult,
    TextModelInfo,
    default_text_models,
)
from pollinations_bot.prompts import (
    IMAGE_RETRY_LENGTHS,
    IMAGE_URL_PROMPT_LIMIT,
    encode_path_segment,
    image_prompt_candidates,
    limit_audio_text,
    truncate,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
Strategy = Tuple[str, Callable[[], Awaitable[T]]]
StageCallback = Callable[[str], Awaitable[None]]

MIN_MEDIA_BYTES = 1000
MIN_TRANSCRIPTION_INPUT_BYTES = 100
ALTERNATIVE_IMAGE_MODELS = ("flux", "sdxl", "pixart")
FINAL_IMAGE_MODEL = "flux"
CONNECT_TIMEOUT = 10.0
TRANSCRIBE_INSTRUCTION = "Transcribe this audio accurately"


class UpstreamError(RuntimeError):
    """Raised when every strategy for an upstream call has failed."""


class PayloadTooSmall(UpstreamError):
    def __init__(self, size: int, minimum: int = MIN_MEDIA_BYTES) -> None:
        super().__init__(f"Payload of {size} bytes is below the {minimum} byte minimum")
        self.size = size
        self.minimum = minimum


def root_cause(exc: BaseException) -> BaseException:
    """Follow the exception chain down to the first error raised."""
    seen: set[int] = set()
    current = exc
    while current.__cause__ is not None and id(current) not in seen:
        seen.add(id(current))
        current = current.__cause__
    return current


class PollinationsClient:
    """Async HTTP client for the Pollinations image and text APIs."""

    def __init__(
        self,
        *,
        image_base: str = DEFAULT_IMAGE_API,
        text_base: str = DEFAULT_TEXT_API,
        timeouts: UpstreamTimeouts,
        audio_legacy_fallbacks: bool = True,
        constrained: bool = False,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.image_base = image_base.rstrip("/")
        self.text_base = text_base.rstrip("/")
        self.timeouts = timeouts
        self.audio_legacy_fallbacks = audio_legacy_fallbacks
        # Short-lived hosts cannot afford the alternate-model stages.
        self.constrained = constrained
        self._http = http_client or httpx.AsyncClient(follow_redirects=True)

    async def aclose(self) -> None:
        await self._http.aclose()

    # Images

    async def generate_image(self, request: ImageRequest) -> ImageResult:
        """Generate an image, retrying with progressively shorter prompts."""
        strategies: list[Strategy[ImageResult]] = []
        for prompt in image_prompt_candidates(request.prompt):
            strategies.append(
                (f"get-prompt-{len(prompt)}", _bind(self._image_attempt, request, prompt))
            )
        return await self._run_strategies("image", strategies)

    async def generate_image_with_fallback(
        self,
        request: ImageRequest,
        on_stage: Optional[StageCallback] = None,
    ) -> ImageResult:
        """Generate an image, then try an alternate model and a final shortened prompt.

        A constrained client runs only the shortened-prompt chain of
        generate_image.
        """
        if self.constrained:
            return await self.generate_image(request)
        strategies: list[Strategy[ImageResult]] = [
            ("requested-model", lambda: self.generate_image(request)),
            ("alternative-model", lambda: self._alternative_model_attempt(request)),
            ("shortened-prompt", lambda: self._shortened_prompt_attempt(request)),
        ]
        return await self._run_strategies("image-fallback", strategies, on_stage=on_stage)

    def image_url(self, request: ImageRequest, prompt: Optional[str] = None) -> str:
        """Return the GET URL that renders request, for clients that fetch it themselves."""
        effective = truncate(prompt if prompt is not None else request.prompt, IMAGE_URL_PROMPT_LIMIT)
        url = httpx.URL(
            f"{self.image_base}/prompt/{encode_path_segment(effective)}",
            params=self._image_params(request),
        )
        return str(url)

    def image_url_candidates(self, request: ImageRequest) -> list[Tuple[str, str]]:
        """(prompt, url) pairs for the retry chain as sent by URL, longest first."""
        candidates: list[Tuple[str, str]] = []
        for prompt in image_prompt_candidates(request.prompt):
            effective = truncate(prompt, IMAGE_URL_PROMPT_LIMIT)
            if any(effective == seen for seen, _ in candidates):
                continue
            candidates.append((effective, self.image_url(request, effective)))
        return candidates

    async def _image_attempt(self, request: ImageRequest, prompt: str) -> ImageResult:
        data = await self._get_bytes(
            self.image_url(request, prompt),
            timeout=request.timeout or self.timeouts.image,
        )
        return ImageResult(
            data=data,
            prompt=prompt,
            model=request.model,
            width=request.width,
            height=request.height,
            used_shortened_prompt=prompt != request.prompt,
        )

    async def _alternative_model_attempt(self, request: ImageRequest) -> ImageResult:
        model = next(
            (item for item in ALTERNATIVE_IMAGE_MODELS if item != request.model),
            FINAL_IMAGE_MODEL,
        )
        logger.info("image fallback switching model from=%s to=%s", request.model, model)
        result = await self.generate_image(
            request.with_changes(model=model, timeout=self.timeouts.image_fallback)
        )
        result.used_alternative_model = True
        return result

    async def _shortened_prompt_attempt(self, request: ImageRequest) -> ImageResult:
        result = await self.generate_image(
            request.with_changes(
                prompt=truncate(request.prompt, IMAGE_RETRY_LENGTHS[0]),
                model=FINAL_IMAGE_MODEL,
                enhance=True,
                timeout=self.timeouts.image_fallback,
            )
        )
        result.used_alternative_model = request.model != FINAL_IMAGE_MODEL
        result.used_shortened_prompt = True
        return result

    @staticmethod
    def _image_params(request: ImageRequest) -> dict[str, str]:
        params = {
            "model": request.model,
            "width": str(request.width),
            "height": str(request.height),
            "seed": str(request.seed),
            "nologo": "true",
        }
        if request.enhance:
            params["enhance"] = "true"
        if request.private:
            params["private"] = "true"
        if request.safe:
            params["safe"] = "true"
        return params

    # Audio

    async def generate_audio(self, request: AudioRequest) -> bytes:
        """Synthesize speech, trying each known request shape in order."""
        text = limit_audio_text(request.text)
        timeout = request.timeout or self.timeouts.audio
        logger.info(
            "audio synthesis voice=%s model=%s chars=%d", request.voice, request.model, len(text)
        )
        strategies: list[Strategy[bytes]] = [
            (
                "post-openai-audio",
                lambda: self._post_bytes(
                    f"{self.text_base}/openai-audio",
                    {
                        "model": request.model,
                        "voice": request.voice,
                        "messages": [{"role": "user", "content": text}],
                    },
                    timeout=timeout,
                ),
            ),
        ]
        if self.audio_legacy_fallbacks:
            strategies.append(
                (
                    "get-url-text",
                    lambda: self._get_bytes(
                        f"{self.text_base}/{encode_path_segment(text)}",
                        params={"model": request.model, "voice": request.voice},
                        timeout=timeout,
                    ),
                )
            )
            strategies.append(
                (
                    "post-openai-inline-voice",
                    lambda: self._post_bytes(
                        f"{self.text_base}/openai",
                        {
                            "model": "openai-audio",
                            "messages": [
                                {
                                    "role": "user",
                                    "content": [
                                        {
                                            "type": "text",
                                            "text": (
                                                "Convert this text to speech using voice "
                                                f"{request.voice}: {text}"
                                            ),
                                        }
                                    ],
                                }
                            ],
                        },
                        timeout=timeout,
                    ),
                )
            )
        return await self._run_strategies("audio", strategies)

    async def transcribe_audio(self, data: bytes, audio_format: str = "ogg") -> str:
        """Transcribe audio bytes through the chat-completion endpoint."""
        if not data or len(data) < MIN_TRANSCRIPTION_INPUT_BYTES:
            raise ValueError("Audio payload is empty or too small to transcribe")
        payload = {
            "model": "openai-audio",
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": TRANSCRIBE_INSTRUCTION},
                        {
                            "type": "input_audio",
                            "input_audio": {
                                "data": base64.b64encode(data).decode("ascii"),
                                "format": audio_format,
                            },
                        },
                    ],
                }
            ],
        }
        logger.info("transcription format=%s size=%d", audio_format, len(data))

        async def attempt() -> str:
            body = await self._post_json(
                f"{self.text_base}/openai", payload, timeout=self.timeouts.transcription
            )
            return _extract_completion_text(body)

        return await self._run_strategies("transcription", [("post-input-audio", attempt)])

    # Text

    async def generate_text(
        self,
        messages: Sequence[dict[str, Any]],
        *,
        model: str = "openai",
        private: bool = False,
        seed: Optional[int] = None,
    ) -> str:
        """Send the running conversation and return the reply text. No local retry."""
        payload: dict[str, Any] = {
            "messages": list(messages),
            "model": model,
            "jsonMode": False,
            "private": private,
        }
        if seed is not None:
            payload["seed"] = seed

        async def attempt() -> str:
            response = await self._http.post(
                f"{self.text_base}/", json=payload, timeout=_timeout(self.timeouts.chat)
            )
            response.raise_for_status()
            text = response.text.strip()
            if not text:
                raise UpstreamError("Text API returned an empty reply")
            return text

        return await self._run_strategies("chat", [("post-messages", attempt)])

    # Catalogs

    async def list_image_models(self) -> list[str]:
        try:
            data = await self._get_json(f"{self.image_base}/models")
        except Exception as exc:  # noqa: BLE001 - catalog falls back to defaults
            logger.warning("image model catalog unavailable, using defaults: %s", exc)
            return list(DEFAULT_IMAGE_MODELS)
        models: list[str] = []
        if isinstance(data, list):
            models = [item.strip() for item in data if isinstance(item, str) and item.strip()]
        if not models:
            logger.warning("image model catalog empty or malformed, using defaults")
            return list(DEFAULT_IMAGE_MODELS)
        return models

    async def list_text_models(self) -> list[TextModelInfo]:
        try:
            data = await self._get_json(f"{self.text_base}/models")
        except Exception as exc:  # noqa: BLE001 - catalog falls back to defaults
            logger.warning("text model catalog unavailable, using defaults: %s", exc)
            return default_text_models()
        models: list[TextModelInfo] = []
        if isinstance(data, list):
            models = [info for info in map(_parse_text_model, data) if info is not None]
        if not models:
            logger.warning("text model catalog empty or malformed, using defaults")
            return default_text_models()
        return models

    async def list_voices(self, audio_model: str = "openai-audio") -> list[str]:
        for info in await self.list_text_models():
            if info.model == audio_model and info.voices:
                return list(info.voices)
        return list(DEFAULT_VOICES)

    # Plumbing

    async def _run_strategies(
        self,
        kind: str,
        strategies: Sequence[Strategy[T]],
        *,
        on_stage: Optional[StageCallback] = None,
    ) -> T:
        last_error: Optional[Exception] = None
        for attempt, (label, action) in enumerate(strategies, start=1):
            if attempt > 1 and on_stage is not None:
                await on_stage(label)
            try:
                result = await action()
            except Exception as exc:  # noqa: BLE001 - any failure moves to the next strategy
                last_error = exc
                logger.warning(
                    "pollinations %s attempt=%d strategy=%s failed: %s: %s",
                    kind,
                    attempt,
                    label,
                    type(exc).__name__,
                    exc,
                )
                continue
            logger.info("pollinations %s attempt=%d strategy=%s succeeded", kind, attempt, label)
            return result
        raise UpstreamError(
            f"Pollinations {kind} request failed after {len(strategies)} attempts"
        ) from last_error

    async def _get_bytes(
        self, url: str, *, timeout: float, params: Optional[dict[str, str]] = None
    ) -> bytes:
        response = await self._http.get(url, params=params, timeout=_timeout(timeout))
        response.raise_for_status()
        return _require_media(response.content)

    async def _post_bytes(self, url: str, payload: dict[str, Any], *, timeout: float) -> bytes:
        response = await self._http.post(url, json=payload, timeout=_timeout(timeout))
        response.raise_for_status()
        return _require_media(response.content)

    async def _post_json(self, url: str, payload: dict[str, Any], *, timeout: float) -> Any:
        response = await self._http.post(url, json=payload, timeout=_timeout(timeout))
        response.raise_for_status()
        return response.json()

    async def _get_json(self, url: str) -> Any:
        response = await self._http.get(url, timeout=_timeout(self.timeouts.catalog))
        response.raise_for_status()
        return response.json()


def _bind(func: Callable[..., Awaitable[T]], *args: Any) -> Callable[[], Awaitable[T]]:
    return lambda: func(*args)


def _timeout(seconds: float) -> httpx.Timeout:
    return httpx.Timeout(seconds, connect=min(CONNECT_TIMEOUT, seconds))


def _require_media(data: bytes) -> bytes:
    if len(data) < MIN_MEDIA_BYTES:
        raise PayloadTooSmall(len(data))
    return data


def _extract_completion_text(body: Any) -> str:
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise UpstreamError("Transcription response has no completion text") from exc
    if isinstance(content, list):
        content = "".join(
            str(part.get("text", "")) for part in content if isinstance(part, dict)
        )
    if not isinstance(content, str) or not content.strip():
        raise UpstreamError("Transcription response is empty")
    return content.strip()


def _parse_text_model(item: object) -> Optional[TextModelInfo]:
    if not isinstance(item, dict):
        return None
    name = item.get("name") or item.get("model")
    if not isinstance(name, str) or not name.strip():
        return None
    model_type = str(item.get("type") or "text")
    voices = item.get("voices")
    return TextModelInfo(
        model=name.strip(),
        type="text" if model_type == "chat" else model_type,
        description=str(item.get("description") or ""),
        vision=bool(item.get("vision")),
        reasoning=bool(item.get("reasoning")),
        censored=bool(item.get("censored")),
        voices=[str(voice) for voice in voices] if isinstance(voices, list) else [],
    )

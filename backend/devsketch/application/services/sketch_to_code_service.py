"""Sketch-to-code use case — turns annotated sketch shapes into component code.

Runs on the generation server. The primary model gets the full compact
sketch; when it fails or answers with nothing, a smaller fallback model gets
a trimmed sketch and a shorter prompt. There is no canned template: if both
models fail the caller receives a typed ``GenerationError``.
"""

import json
import logging
import re
import time
from collections import deque

from devsketch.application.interfaces.chat_provider import ChatProvider
from devsketch.domain.entities import ChatMessage, Element, GenerationRequest, annotate_shapes
from devsketch.domain.exceptions import (
    ChatProviderError,
    EmptySketchError,
    GenerationError,
    GenerationTransportError,
    RateLimitedError,
    UpstreamEmptyResponseError,
    UpstreamTimeoutError,
)
from devsketch.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("SketchToCodeService")

_FENCE_OPEN = re.compile(r"```(?:jsx?|tsx?|javascript|typescript|react|html|vue)?")
_FALLBACK_SHAPE_KEYS = ("id", "type", "x", "y", "width", "height", "text", "uiHint")

_SYSTEM_PROMPT = """You are a specialized AI that converts Excalidraw sketches directly to clean code.
Your task is to analyze the JSON representation of visual elements and translate them into functional code.

IMPORTANT OUTPUT RULES:
- Return ONLY pure code with no markdown formatting, no comments, and no explanations
- Do not wrap code in backticks or code blocks
- Begin with import statements and end with export statement
- Do not include any text before or after the code

For Excalidraw elements:
- Each element may carry a "uiHint" naming the component it most likely represents
- Rectangle elements become containers with borders, width, height and positioning
- Text elements become headings, paragraphs, labels or button text depending on context
- Lines are dividers or connectors between components
- Circles/ellipses often represent buttons, avatars or decorative elements"""

_FALLBACK_SYSTEM_PROMPT = (
    "You convert sketches directly to pure code. Return ONLY the code itself - "
    "no explanations, no markdown formatting, no code block markers, and no "
    "additional text. Start with imports and end with export statement."
)


def clean_code_output(raw: str) -> str:
    """Strip markdown fences and chatter around the generated component."""
    code = _FENCE_OPEN.sub("", raw).replace("```", "")

    first_import = code.find("import ")
    if first_import > 0:
        code = code[first_import:]

    last_export = code.rfind("export ")
    if last_export >= 0:
        offset = last_export
        for line in code[last_export:].split("\n"):
            offset += len(line)
            if "export " in line and ";" in line:
                code = code[:offset]
                break
            offset += 1

    return code.strip()


class SlidingWindowRateLimiter:
    """Allows at most ``max_requests`` acquisitions per ``window_seconds``."""

    def __init__(self, max_requests: int, window_seconds: float, clock=time.monotonic):
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._hits: deque[float] = deque()

    def try_acquire(self) -> bool:
        now = self._clock()
        while self._hits and now - self._hits[0] >= self._window:
            self._hits.popleft()
        if len(self._hits) >= self._max_requests:
            return False
        self._hits.append(now)
        return True


class SketchToCodeService:
    """Application service — prompts a chat model with a sketch and cleans its answer."""

    def __init__(
        self,
        provider: ChatProvider | None,
        *,
        model: str,
        fallback_model: str,
        temperature: float = 0.2,
        max_tokens: int = 4000,
        fallback_max_tokens: int = 2000,
        model_timeout: float | None = 15.0,
        rate_limiter: SlidingWindowRateLimiter | None = None,
    ):
        self._provider = provider
        self._model = model
        self._fallback_model = fallback_model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._fallback_max_tokens = fallback_max_tokens
        self._model_timeout = model_timeout
        self._rate_limiter = rate_limiter

    async def generate(self, request: GenerationRequest) -> str:
        """Generate component code for ``request``.

        Raises:
            EmptySketchError: The request has no elements.
            RateLimitedError: The rate limit window is exhausted.
            UpstreamTimeoutError: Both models timed out.
            UpstreamEmptyResponseError: The fallback model returned no code.
            GenerationTransportError: No provider configured, or a provider failure.
        """
        if not request.elements:
            raise EmptySketchError()
        if self._rate_limiter is not None and not self._rate_limiter.try_acquire():
            logger.warning("Generation rate limit exceeded")
            raise RateLimitedError()
        if self._provider is None:
            raise GenerationTransportError("Code generation is not configured on this server.")

        sketch = annotate_shapes(request.elements)
        plog.step_start(
            PipelineStage.REQUEST,
            f"Prepared {len(sketch)} shapes",
            framework=request.framework,
            css=request.css,
        )

        try:
            with plog.timed_step(PipelineStage.MODEL, f"Calling {self._model}"):
                code = await self._call(
                    self._model,
                    _SYSTEM_PROMPT,
                    self._primary_prompt(request, sketch),
                    self._max_tokens,
                )
            if code:
                plog.step_complete(PipelineStage.COMPLETE, "Code ready", length=len(code))
                return code
            logger.warning("Primary model %s returned no code", self._model)
        except ChatProviderError as e:
            logger.warning("Primary model %s failed: %s", self._model, e)

        return await self._generate_with_fallback(request, sketch)

    async def _generate_with_fallback(
        self, request: GenerationRequest, sketch: list[Element]
    ) -> str:
        trimmed = [
            {key: shape.get(key) for key in _FALLBACK_SHAPE_KEYS if key in shape}
            for shape in sketch
        ]
        try:
            with plog.timed_step(PipelineStage.FALLBACK, f"Calling {self._fallback_model}"):
                code = await self._call(
                    self._fallback_model,
                    _FALLBACK_SYSTEM_PROMPT,
                    self._fallback_prompt(request, trimmed),
                    self._fallback_max_tokens,
                )
        except ChatProviderError as e:
            raise self._error_from_provider(e) from e

        if not code:
            raise UpstreamEmptyResponseError()
        plog.step_complete(PipelineStage.COMPLETE, "Fallback code ready", length=len(code))
        return code

    async def _call(self, model: str, system: str, prompt: str, max_tokens: int) -> str:
        result = await self._provider.complete(
            messages=[ChatMessage.system(system), ChatMessage.user(prompt)],
            model=model,
            temperature=self._temperature,
            max_tokens=max_tokens,
            timeout=self._model_timeout,
        )
        plog.detail("Model answered", model=result.model, chars=len(result.content))
        if result.truncated:
            logger.warning("%s hit its token limit; the component may be cut short", model)
        if not result.content.strip():
            return ""
        return clean_code_output(result.content)

    @staticmethod
    def _primary_prompt(request: GenerationRequest, sketch: list[Element]) -> str:
        reference = ""
        if request.owner_id and request.owner_id.strip():
            reference = f"\nReference ID: {request.owner_id[:8]}"
        return (
            f"Convert this Excalidraw sketch to {request.framework} + {request.css} code:\n"
            "- Return ONLY pure code with no explanations or comments\n"
            "- Use functional components\n"
            "- Make the layout responsive\n"
            "- Do NOT include commas between JSX attributes\n"
            "- Give me ONLY the component code that I can directly copy and use\n"
            f"- Start with import statements and end with export statement{reference}\n\n"
            f"Sketch JSON: {json.dumps(sketch)}"
        )

    @staticmethod
    def _fallback_prompt(request: GenerationRequest, sketch: list[Element]) -> str:
        return (
            f"Convert this sketch to {request.framework} with {request.css}:\n"
            "- Return ONLY code with no explanations\n"
            "- Do NOT use commas between JSX attributes\n"
            "- Only include import statements, component code, and export statement\n"
            "- No markdown formatting, no comments, just pure code\n"
            f"Sketch: {json.dumps(sketch)}"
        )

    @staticmethod
    def _error_from_provider(error: ChatProviderError) -> GenerationError:
        if error.status_code == 429:
            return RateLimitedError()
        if error.status_code in (408, 504):
            return UpstreamTimeoutError()
        return GenerationTransportError(f"All model attempts failed: {error.message}")

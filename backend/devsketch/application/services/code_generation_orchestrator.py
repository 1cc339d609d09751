"""Code generation orchestrator — drives one logical generation against the endpoint.

Picks single-response or streaming mode, annotates the sketch with UI-role
hints, reassembles streamed fragments and applies the fallback policy:

- AUTO with a complex sketch starts in single-response mode and retries once
  in streaming mode when that attempt fails outright.
- AUTO with a small sketch starts streaming and retries once in
  single-response mode when the first stream message cannot be parsed.

At most one fallback happens, and one wall-clock budget covers both attempts.
The result never raises: failures are reported in ``GenerationResult``.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import aclosing
from dataclasses import dataclass

from devsketch.application.interfaces.generation_gateway import GenerationGateway
from devsketch.domain.entities import (
    Element,
    GenerationMode,
    GenerationProgress,
    GenerationRequest,
    GenerationResult,
    StreamCodeFragment,
    StreamEnd,
    StreamError,
    StreamMessageParseError,
    StreamSuccess,
    StreamToken,
    annotate_shapes,
    parse_stream_message,
)
from devsketch.domain.exceptions import (
    EmptySketchError,
    GenerationError,
    GenerationTransportError,
    PartialStreamTruncatedError,
    RateLimitedError,
    UpstreamEmptyResponseError,
    UpstreamTimeoutError,
    generation_error_for,
)
from devsketch.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("CodeGenerationOrchestrator")

ProgressCallback = Callable[[GenerationProgress], None]

# Failures a second attempt in another mode cannot fix.
_FINAL_ERRORS = (EmptySketchError, RateLimitedError, UpstreamTimeoutError)


class _UnparseableStreamError(GenerationError):
    """The very first stream message was not understood."""

    kind = GenerationTransportError.kind
    default_message = "Could not parse the generation stream."


@dataclass
class _Attempt:
    """Mutable per-generation state shared with the running attempt."""

    design_token: str | None = None


class CodeGenerationOrchestrator:
    """Application service — one logical generation per ``generate`` call."""

    def __init__(
        self,
        gateway: GenerationGateway,
        *,
        timeout_seconds: float = 45.0,
        complex_sketch_threshold: int = 30,
    ):
        self._gateway = gateway
        self._timeout = timeout_seconds
        self._complex_threshold = complex_sketch_threshold

    def select_mode(self, shape_count: int, requested: GenerationMode = GenerationMode.AUTO) -> GenerationMode:
        """Resolve the mode of the first attempt."""
        if requested is not GenerationMode.AUTO:
            return requested
        if shape_count > self._complex_threshold:
            return GenerationMode.SINGLE
        return GenerationMode.STREAM

    async def generate(
        self,
        elements: list[Element],
        framework: str = "react",
        css: str = "tailwind",
        *,
        owner_id: str | None = None,
        design_hint: str | None = None,
        mode: GenerationMode = GenerationMode.AUTO,
        on_progress: ProgressCallback | None = None,
    ) -> GenerationResult:
        """Generate code for ``elements``.

        ``on_progress`` receives the partially assembled code as fragments
        arrive in streaming mode.
        """
        if not elements:
            plog.step_error(PipelineStage.ERROR, "Nothing to generate: the sketch is empty")
            return self._failure(EmptySketchError(), None, None)

        request = GenerationRequest(
            elements=annotate_shapes(elements),
            framework=framework,
            css=css,
            owner_id=owner_id,
            design_hint=design_hint,
        )
        primary = self.select_mode(len(elements), mode)
        plog.step_start(
            PipelineStage.REQUEST,
            f"Generating from {len(elements)} shapes",
            mode=primary.value,
            framework=framework,
            css=css,
        )

        deadline = asyncio.get_running_loop().time() + self._timeout
        state = _Attempt()

        try:
            code = await self._run_attempt(request, primary, state, deadline, on_progress)
            return self._success(code, state, primary, fallback_used=False)
        except _UnparseableStreamError as e:
            logger.warning("Stream unreadable from the first message (%s); retrying once", e)
            fallback = GenerationMode.SINGLE
        except GenerationError as e:
            if not self._may_fall_back(primary, mode, e):
                return self._failure(e, state.design_token, primary)
            logger.warning("Single-response attempt failed (%s); retrying once", e)
            fallback = GenerationMode.STREAM

        plog.step_start(PipelineStage.FALLBACK, f"Retrying in {fallback.value} mode")
        try:
            code = await self._run_attempt(request, fallback, state, deadline, on_progress)
        except _UnparseableStreamError as e:
            return self._failure(
                GenerationTransportError(str(e), design_token=state.design_token),
                state.design_token,
                fallback,
                fallback_used=True,
            )
        except GenerationError as e:
            return self._failure(e, state.design_token, fallback, fallback_used=True)
        return self._success(code, state, fallback, fallback_used=True)

    @staticmethod
    def _may_fall_back(primary: GenerationMode, requested: GenerationMode, error: GenerationError) -> bool:
        return (
            requested is GenerationMode.AUTO
            and primary is GenerationMode.SINGLE
            and not isinstance(error, _FINAL_ERRORS)
        )

    async def _run_attempt(
        self,
        request: GenerationRequest,
        mode: GenerationMode,
        state: _Attempt,
        deadline: float,
        on_progress: ProgressCallback | None,
    ) -> str:
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise UpstreamTimeoutError(design_token=state.design_token)

        if mode is GenerationMode.SINGLE:
            attempt = self._request_single(request, state)
        else:
            attempt = self._request_stream(request, state, on_progress)

        try:
            return await asyncio.wait_for(attempt, timeout=remaining)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(design_token=state.design_token) from e

    async def _request_single(self, request: GenerationRequest, state: _Attempt) -> str:
        data = await self._gateway.request_single(request.to_payload(non_streaming=True))

        token = data.get("designToken")
        if isinstance(token, str) and token:
            state.design_token = token

        error = data.get("error")
        if error:
            raise generation_error_for(data.get("errorKind"), str(error), state.design_token)

        code = data.get("code")
        if not isinstance(code, str) or not code.strip():
            raise UpstreamEmptyResponseError(design_token=state.design_token)
        return code

    async def _request_stream(
        self,
        request: GenerationRequest,
        state: _Attempt,
        on_progress: ProgressCallback | None,
    ) -> str:
        fragments: list[str] = []
        complete = False
        first = True

        async with aclosing(self._gateway.request_stream(request.to_payload())) as lines:
            async for line in lines:
                try:
                    message = parse_stream_message(line)
                except StreamMessageParseError as e:
                    if first:
                        raise _UnparseableStreamError(str(e), state.design_token) from e
                    raise GenerationTransportError(
                        f"Malformed stream message: {e}", design_token=state.design_token
                    ) from e
                first = False

                match message:
                    case StreamToken(design_token=token):
                        state.design_token = token
                    case StreamError(error=error, error_kind=kind):
                        raise generation_error_for(kind, error, state.design_token)
                    case StreamCodeFragment() if not complete:
                        if message.chunk_index != len(fragments):
                            logger.warning(
                                "Fragment %d arrived at position %d",
                                message.chunk_index,
                                len(fragments),
                            )
                        fragments.append(message.code)
                        complete = message.is_last
                        plog.detail(
                            "Fragment received",
                            chunk=message.chunk_index + 1,
                            total=message.total_chunks,
                        )
                        if on_progress is not None:
                            on_progress(
                                GenerationProgress(
                                    partial_code="".join(fragments),
                                    chunk_index=message.chunk_index,
                                    total_chunks=message.total_chunks,
                                    is_complete=complete,
                                )
                            )
                    case StreamSuccess() if complete:
                        break
                    case StreamEnd():
                        break

        if not complete:
            raise PartialStreamTruncatedError(design_token=state.design_token)
        code = "".join(fragments)
        if not code.strip():
            raise UpstreamEmptyResponseError(design_token=state.design_token)
        return code

    @staticmethod
    def _success(
        code: str, state: _Attempt, mode: GenerationMode, *, fallback_used: bool
    ) -> GenerationResult:
        plog.step_complete(
            PipelineStage.COMPLETE,
            "Code generated",
            mode=mode.value,
            length=len(code),
            fallback=fallback_used,
        )
        return GenerationResult(
            code=code,
            design_token=state.design_token,
            mode=mode,
            fallback_used=fallback_used,
        )

    @staticmethod
    def _failure(
        error: GenerationError,
        design_token: str | None,
        mode: GenerationMode | None,
        *,
        fallback_used: bool = False,
    ) -> GenerationResult:
        plog.step_error(PipelineStage.ERROR, "Code generation failed", error=error)
        return GenerationResult(
            code="",
            design_token=error.design_token or design_token,
            error=error.message,
            error_kind=error.kind,
            mode=mode,
            fallback_used=fallback_used,
        )

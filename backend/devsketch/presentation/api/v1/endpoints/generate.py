"""Sketch-to-code endpoint — single JSON response or an NDJSON stream."""

import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from devsketch.application.schemas import GenerateRequest, GenerateResponse
from devsketch.application.services import SketchToCodeService
from devsketch.config import get_settings
from devsketch.domain.entities import (
    GenerationRequest,
    StreamCodeFragment,
    StreamEnd,
    StreamError,
    StreamMessage,
    StreamStart,
    StreamSuccess,
    StreamToken,
    encode_stream_message,
    new_session_id,
)
from devsketch.domain.exceptions import (
    EmptySketchError,
    GenerationError,
    RateLimitedError,
    UpstreamTimeoutError,
)
from devsketch.infrastructure.dependencies import get_sketch_to_code_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Generation"])

_ERROR_STATUS = {
    EmptySketchError.kind: 400,
    RateLimitedError.kind: 429,
    UpstreamTimeoutError.kind: 504,
}


def split_code(code: str, chunk_size: int, threshold: int) -> list[str]:
    """Split long code into fixed-size chunks; short code stays in one piece."""
    if len(code) <= threshold:
        return [code]
    return [code[i:i + chunk_size] for i in range(0, len(code), chunk_size)]


def _line(message: StreamMessage) -> str:
    return encode_stream_message(message) + "\n"


async def _generate_within(
    service: SketchToCodeService, request: GenerationRequest, timeout: float
) -> str:
    try:
        return await asyncio.wait_for(service.generate(request), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise UpstreamTimeoutError() from e


@router.post("/generate", response_model=GenerateResponse)
async def generate_code(
    body: GenerateRequest,
    request: Request,
    service: SketchToCodeService = Depends(get_sketch_to_code_service),
):
    """Generate component code from sketch elements.

    Streams NDJSON messages when the client accepts ``text/event-stream``
    and did not ask for ``useNonStreaming``; otherwise answers with one
    JSON object.
    """
    settings = get_settings()
    design_token = body.design_hint or new_session_id()
    generation_request = GenerationRequest(
        elements=body.elements,
        framework=body.framework,
        css=body.css,
        owner_id=body.owner_id,
        design_hint=body.design_hint,
    )
    logger.info(
        "Generation requested: %d elements, %s + %s",
        len(body.elements),
        body.framework,
        body.css,
    )

    wants_stream = "text/event-stream" in request.headers.get("accept", "")
    if body.use_non_streaming or not wants_stream:
        try:
            code = await _generate_within(
                service, generation_request, settings.generation_server_timeout_seconds
            )
        except GenerationError as e:
            logger.warning("Generation failed (%s): %s", e.kind, e.message)
            response = GenerateResponse(
                design_token=design_token,
                error=e.message,
                error_kind=e.kind,
            )
            return JSONResponse(
                status_code=_ERROR_STATUS.get(e.kind, 502),
                content=response.model_dump(by_alias=True),
            )
        return GenerateResponse(code=code, design_token=design_token, success=True)

    return StreamingResponse(
        _stream_generation(service, generation_request, design_token),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


async def _stream_generation(
    service: SketchToCodeService,
    request: GenerationRequest,
    design_token: str,
) -> AsyncIterator[str]:
    settings = get_settings()
    yield _line(StreamStart(info="Code generation started"))
    yield _line(StreamToken(design_token=design_token))

    try:
        code = await _generate_within(
            service, request, settings.generation_server_timeout_seconds
        )
    except GenerationError as e:
        logger.warning("Streamed generation failed (%s): %s", e.kind, e.message)
        yield _line(StreamError(error=e.message, error_kind=e.kind))
        yield _line(StreamEnd())
        return

    chunks = split_code(code, settings.stream_chunk_size, settings.stream_chunk_threshold)
    for index, chunk in enumerate(chunks):
        yield _line(
            StreamCodeFragment(
                code=chunk,
                chunk_index=index,
                total_chunks=len(chunks),
                is_last=index == len(chunks) - 1,
            )
        )
    yield _line(StreamSuccess(info="Code generation completed"))
    yield _line(StreamEnd())

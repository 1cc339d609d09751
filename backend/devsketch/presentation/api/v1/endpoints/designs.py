"""Design endpoints — remote design store operations and realtime events."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from devsketch.application.interfaces import DesignRepository
from devsketch.application.schemas import (
    DesignCodeUpdate,
    DesignCreate,
    DesignCreatedResponse,
    DesignElementsUpdate,
    DesignResponse,
)
from devsketch.domain.entities import Design
from devsketch.domain.exceptions import (
    ConstraintViolationError,
    EntityNotFoundError,
    RemoteUnavailableError,
)
from devsketch.infrastructure.dependencies import get_design_notifier, get_design_repository
from devsketch.infrastructure.realtime import DesignChangeNotifier

router = APIRouter(prefix="/designs", tags=["Designs"])


def _to_response(design: Design) -> DesignResponse:
    return DesignResponse(
        id=design.id,
        owner_id=design.owner_id,
        session_id=design.session_id,
        elements=design.elements,
        code=design.code,
        created_at=design.created_at,
        updated_at=design.updated_at,
    )


def _unavailable(e: RemoteUnavailableError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.post(
    "",
    response_model=DesignCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_design(
    data: DesignCreate,
    repository: DesignRepository = Depends(get_design_repository),
) -> DesignCreatedResponse:
    """Create a design row and return its ID."""
    try:
        design_id = await repository.create(data.owner_id, data.session_id, data.elements)
    except ConstraintViolationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    except RemoteUnavailableError as e:
        raise _unavailable(e)
    return DesignCreatedResponse(id=design_id)


@router.get("/latest", response_model=DesignResponse)
async def get_latest_design(
    owner_id: str | None = Query(None),
    session_id: str | None = Query(None),
    repository: DesignRepository = Depends(get_design_repository),
) -> DesignResponse:
    """Return the newest design of an owner or of a drawing session."""
    if not owner_id and not session_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Either owner_id or session_id is required",
        )
    try:
        if owner_id:
            design = await repository.find_latest_for_owner(owner_id)
        else:
            design = await repository.find_latest_for_session(session_id)
    except RemoteUnavailableError as e:
        raise _unavailable(e)
    if design is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No design found")
    return _to_response(design)


@router.get("/{design_id}", response_model=DesignResponse)
async def get_design(
    design_id: str,
    repository: DesignRepository = Depends(get_design_repository),
) -> DesignResponse:
    try:
        design = await repository.get_by_id(design_id)
    except RemoteUnavailableError as e:
        raise _unavailable(e)
    if design is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Design with id '{design_id}' not found",
        )
    return _to_response(design)


@router.patch("/{design_id}/elements", response_model=DesignResponse)
async def update_design_elements(
    design_id: str,
    data: DesignElementsUpdate,
    repository: DesignRepository = Depends(get_design_repository),
) -> DesignResponse:
    """Replace the drawing of a design; its code is left untouched."""
    try:
        design = await repository.update_elements(design_id, data.elements)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RemoteUnavailableError as e:
        raise _unavailable(e)
    return _to_response(design)


@router.patch("/{design_id}/code", response_model=DesignResponse)
async def update_design_code(
    design_id: str,
    data: DesignCodeUpdate,
    repository: DesignRepository = Depends(get_design_repository),
) -> DesignResponse:
    """Replace the code of a design; its drawing is left untouched."""
    try:
        design = await repository.update_code(design_id, data.code)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except RemoteUnavailableError as e:
        raise _unavailable(e)
    return _to_response(design)


# ── SSE Stream ───────────────────────────────────────────────────────


@router.get("/{design_id}/events")
async def design_event_stream(
    design_id: str,
    repository: DesignRepository = Depends(get_design_repository),
    notifier: DesignChangeNotifier = Depends(get_design_notifier),
) -> StreamingResponse:
    """SSE endpoint relaying committed updates of one design.

    Clients connect via EventSource and receive 'design.updated' events
    carrying the full row.
    """
    try:
        design = await repository.get_by_id(design_id)
    except RemoteUnavailableError as e:
        raise _unavailable(e)
    if design is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Design with id '{design_id}' not found",
        )

    return StreamingResponse(
        notifier.events(design_id),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )

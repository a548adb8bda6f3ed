"""Main FastAPI application module for the jigsaw assembly engine."""

import logging
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from jigsaw_engine import AssemblyStore

from app.config import settings
from app.models.puzzle_model import (
    BoardResponse,
    HitResponse,
    MoveRequest,
    NewPuzzleRequest,
    ReleaseRequest,
    RotateRequest,
    SelectRequest,
)
from app.services.board_registry import BoardRegistry, get_board_registry
from app.services.image_processor import read_image_size

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title=settings.PROJECT_NAME)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Registry = Annotated[BoardRegistry, Depends(get_board_registry)]


def _get_store(registry: BoardRegistry, board_id: str) -> AssemblyStore:
    store = registry.get(board_id)
    if store is None:
        raise HTTPException(status_code=404, detail="Puzzle not found")
    return store


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post(f"{settings.API_V1_STR}/puzzle", response_model=BoardResponse)
async def create_puzzle(request: NewPuzzleRequest, registry: Registry) -> BoardResponse:
    """Start a new shuffled puzzle board.

    Args:
        request: Image and board dimensions, piece count and strategy.
        registry: The board registry.

    Returns:
        BoardResponse: The new board's id and initial snapshot.

    Raises:
        HTTPException: If the puzzle cannot be generated.
    """
    store = AssemblyStore()
    try:
        # Tessellation is CPU-bound; keep it off the event loop
        state = await run_in_threadpool(
            store.initialize,
            request.image_width,
            request.image_height,
            request.board_width,
            request.board_height,
            request.piece_count,
            request.strategy,
            request.seed,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    # Only boards that generated successfully are kept
    board_id = registry.add(store)
    return BoardResponse.from_state(board_id, state)


@app.post(f"{settings.API_V1_STR}/puzzle/upload", response_model=BoardResponse)
async def upload_puzzle(
    registry: Registry,
    file: Optional[UploadFile] = None,
    board_width: float = Query(..., gt=0),
    board_height: float = Query(..., gt=0),
    piece_count: int = Query(24, ge=4, le=1000),
    strategy: Optional[str] = Query(None, pattern="^(organic|grid)$"),
    seed: Optional[int] = Query(None),
) -> BoardResponse:
    """Start a new puzzle sized from an uploaded image.

    Args:
        registry: The board registry.
        file: The puzzle image file.
        board_width: Board viewport width.
        board_height: Board viewport height.
        piece_count: Target number of pieces.
        strategy: Tessellation strategy.
        seed: Optional random seed.

    Returns:
        BoardResponse: The new board's id and initial snapshot.

    Raises:
        HTTPException: If the file is missing, too large or not an image.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    if file.size and file.size > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="File too large")

    try:
        width, height = read_image_size(await file.read())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return await create_puzzle(
        NewPuzzleRequest(
            image_width=width,
            image_height=height,
            board_width=board_width,
            board_height=board_height,
            piece_count=piece_count,
            strategy=strategy,  # type: ignore[arg-type]
            seed=seed,
        ),
        registry,
    )


@app.get(f"{settings.API_V1_STR}/puzzle/{{board_id}}", response_model=BoardResponse)
def get_puzzle(board_id: str, registry: Registry) -> BoardResponse:
    """Return the current snapshot of a board."""
    return BoardResponse.from_state(board_id, _get_store(registry, board_id).state)


@app.delete(f"{settings.API_V1_STR}/puzzle/{{board_id}}")
def delete_puzzle(board_id: str, registry: Registry) -> dict[str, str]:
    """Discard a board."""
    if not registry.remove(board_id):
        raise HTTPException(status_code=404, detail="Puzzle not found")
    return {"status": "deleted"}


@app.post(f"{settings.API_V1_STR}/puzzle/{{board_id}}/select", response_model=BoardResponse)
def select_entity(board_id: str, request: SelectRequest, registry: Registry) -> BoardResponse:
    """Select a piece or group (raising it to the top), or clear the selection."""
    state = _get_store(registry, board_id).select(request.entity_id)
    return BoardResponse.from_state(board_id, state)


@app.post(f"{settings.API_V1_STR}/puzzle/{{board_id}}/move", response_model=BoardResponse)
def move_entity(board_id: str, request: MoveRequest, registry: Registry) -> BoardResponse:
    """Translate a piece or group by a board-space delta."""
    state = _get_store(registry, board_id).move(request.entity_id, request.dx, request.dy)
    return BoardResponse.from_state(board_id, state)


@app.post(f"{settings.API_V1_STR}/puzzle/{{board_id}}/rotate", response_model=BoardResponse)
def rotate_entity(board_id: str, request: RotateRequest, registry: Registry) -> BoardResponse:
    """Rotate a piece or group to an absolute angle or by a relative delta.

    Raises:
        HTTPException: Unless exactly one of angle and delta is given.
    """
    if (request.angle is None) == (request.delta is None):
        raise HTTPException(status_code=400, detail="Provide exactly one of angle or delta")

    store = _get_store(registry, board_id)
    if request.angle is not None:
        state = store.rotate(request.entity_id, request.angle)
    else:
        state = store.rotate_by(request.entity_id, request.delta)
    return BoardResponse.from_state(board_id, state)


@app.post(f"{settings.API_V1_STR}/puzzle/{{board_id}}/release", response_model=BoardResponse)
def release_entity(board_id: str, request: ReleaseRequest, registry: Registry) -> BoardResponse:
    """End a drag or rotate gesture: square up the rotation and try to snap."""
    state = _get_store(registry, board_id).release(request.entity_id, request.scale)
    return BoardResponse.from_state(board_id, state)


@app.get(f"{settings.API_V1_STR}/puzzle/{{board_id}}/hit", response_model=HitResponse)
def hit_test(board_id: str, registry: Registry, x: float = Query(...), y: float = Query(...)) -> HitResponse:
    """Return the topmost piece or group under a board point."""
    entity = _get_store(registry, board_id).entity_at(x, y)
    return HitResponse(entity_id=entity.id if entity else None)

"""
HTTP surface for the match engine.

POST /matches accepts either a stored item id or an inline item and
returns [{"id", "score"}] ordered by descending score. Malformed input
is a 400, an unknown id a 404. GET /items lists reports filtered by
status and search text; POST /items/{id}/confirm records a confirmed pairing.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import MatchConfig, load_config
from .env import load_env
from .errors import ItemNotFoundError, ItemValidationError
from .logger import get_logger
from .models import ItemRecord

from pipelines.matching.ranker import RankedMatch
from pipelines.matching.resolver import confirm_match, find_matches, match_item
from storage.repositories import ItemRepository

load_env()


class ItemPayload(BaseModel):
    id: Optional[str] = None
    status: Literal["lost", "found"]
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: str = Field(min_length=1)
    location: str = ""
    date: str = ""
    image_ref: str = ""
    labels: List[str] = Field(default_factory=list)
    color_profile: Optional[str] = None
    object_type: Optional[str] = None


class MatchRequest(BaseModel):
    id: Optional[str] = None
    item: Optional[ItemPayload] = None


class MatchResult(BaseModel):
    id: str
    score: int


class ConfirmRequest(BaseModel):
    match_id: str = Field(min_length=1)


def get_config() -> MatchConfig:
    return load_config()


def get_repository(config: MatchConfig = Depends(get_config)) -> ItemRepository:
    return ItemRepository(config.db_path)


def _effective_config(config: MatchConfig, min_confidence: Optional[int], limit: Optional[int]) -> MatchConfig:
    return MatchConfig(
        min_confidence=config.min_confidence if min_confidence is None else min_confidence,
        limit=config.limit if limit is None else limit,
        date_rule=config.date_rule,
        weights=config.weights,
        db_path=config.db_path,
        log_level=config.log_level,
        log_dir=config.log_dir,
    )


def _results(ranked: List[RankedMatch]) -> List[MatchResult]:
    return [MatchResult(id=match.item.id, score=match.score) for match in ranked]


def _match_stored(item_id: str, repository: ItemRepository, config: MatchConfig, persist: bool) -> List[MatchResult]:
    try:
        ranked = find_matches(item_id, repository, config, persist=persist)
    except ItemNotFoundError:
        raise HTTPException(status_code=404, detail="Item not found")
    except ItemValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)
    return _results(ranked)


router = APIRouter()


@router.post("/matches", response_model=List[MatchResult])
async def create_match_query(
    request: MatchRequest,
    min_confidence: Optional[int] = Query(None, ge=0, le=100),
    limit: Optional[int] = Query(None, ge=1),
    persist: bool = False,
    repository: ItemRepository = Depends(get_repository),
    config: MatchConfig = Depends(get_config),
):
    config = _effective_config(config, min_confidence, limit)

    if (request.id is None) == (request.item is None):
        raise HTTPException(status_code=400, detail="Provide exactly one of 'id' or 'item'")

    if request.id is not None:
        return _match_stored(request.id, repository, config, persist)

    query = ItemRecord.from_dict(request.item.model_dump())
    try:
        ranked = match_item(query, repository.get_all(), config)
    except ItemValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)
    return _results(ranked)


@router.get("/items/{item_id}/matches", response_model=List[MatchResult])
async def get_item_matches(
    item_id: str,
    min_confidence: Optional[int] = Query(None, ge=0, le=100),
    limit: Optional[int] = Query(None, ge=1),
    repository: ItemRepository = Depends(get_repository),
    config: MatchConfig = Depends(get_config),
):
    return _match_stored(item_id, repository, _effective_config(config, min_confidence, limit), persist=False)


@router.get("/items")
async def list_items(
    status: Optional[Literal["lost", "found"]] = None,
    search: Optional[str] = None,
    repository: ItemRepository = Depends(get_repository),
):
    return [item.to_dict() for item in repository.get_all(status, search)]


@router.post("/items/{item_id}/confirm")
async def confirm_item_match(
    item_id: str,
    request: ConfirmRequest,
    repository: ItemRepository = Depends(get_repository),
):
    try:
        item, other = confirm_match(repository, item_id, request.match_id)
    except ItemNotFoundError:
        raise HTTPException(status_code=404, detail="Item not found")
    except ItemValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)
    return [item.to_dict(), other.to_dict()]


def create_app() -> FastAPI:
    app = FastAPI(title="lostfound", version=__version__)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        get_logger().warning("Rejected malformed request", path=request.url.path, errors=len(exc.errors()))
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    app.include_router(router, tags=["Matching"])

    @app.get("/")
    def root():
        return {"status": "ok"}

    return app


app = create_app()

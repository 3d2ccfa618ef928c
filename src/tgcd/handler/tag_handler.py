"""Tag RPC handlers.

Unary JSON calls on Connect-style procedure paths
(``POST /tgcd.v1.Tgcd/<Method>``). Malformed input and storage failures are
mapped to ``invalid_argument`` and ``unavailable`` by the exception handlers
registered in :func:`register_error_handlers`.
"""

import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tgcd.domain.errors import InvalidArgumentError, StorageError
from tgcd.domain.models import Blake2bHash, parse_tags
from tgcd.handler.schemas import (
    AddTagsRequest,
    EmptyResponse,
    ErrorResponse,
    GetMultipleTagsRequest,
    GetMultipleTagsResponse,
    HashRequest,
    SrcDestRequest,
    TagsResponse,
)
from tgcd.port.tag_store_port import TagStorePort

logger = structlog.get_logger(__name__)

SERVICE_PATH = "/tgcd.v1.Tgcd"

router = APIRouter(prefix=SERVICE_PATH, tags=["tags"])


def _store(request: Request) -> TagStorePort:
    return request.app.state.tag_store


@router.post("/GetTags", response_model=TagsResponse)
async def get_tags(body: HashRequest, request: Request) -> TagsResponse:
    hash_ = Blake2bHash.from_hex(body.hash)
    tags = await _store(request).get_tags(hash_)
    return TagsResponse(tags=tags)


@router.post("/AddTagsToHash", response_model=EmptyResponse)
async def add_tags_to_hash(body: AddTagsRequest, request: Request) -> EmptyResponse:
    hash_ = Blake2bHash.from_hex(body.hash)
    tags = parse_tags(body.tags)
    await _store(request).add_tags_to_hash(hash_, tags)
    return EmptyResponse()


@router.post("/GetMultipleTags", response_model=GetMultipleTagsResponse)
async def get_multiple_tags(body: GetMultipleTagsRequest, request: Request) -> GetMultipleTagsResponse:
    hashes = [Blake2bHash.from_hex(value) for value in body.hashes]
    results = await _store(request).get_multiple_tags(hashes)
    return GetMultipleTagsResponse(tags=[TagsResponse(tags=tags) for tags in results])


@router.post("/CopyTags", response_model=EmptyResponse)
async def copy_tags(body: SrcDestRequest, request: Request) -> EmptyResponse:
    src_hash = Blake2bHash.from_hex(body.src_hash)
    dest_hash = Blake2bHash.from_hex(body.dest_hash)
    await _store(request).copy_tags(src_hash, dest_hash)
    return EmptyResponse()


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=code, message=message).model_dump(),
    )


async def _invalid_argument(request: Request, exc: Exception) -> JSONResponse:
    logger.info("rejected invalid argument", path=request.url.path, error=str(exc))
    return _error(400, "invalid_argument", "Received invalid argument")


async def _unavailable(request: Request, exc: Exception) -> JSONResponse:
    # Already logged with its context by the gateway.
    return _error(503, "unavailable", "db error")


def register_error_handlers(app: FastAPI) -> None:
    """Map domain errors onto the two conditions the RPC surface exposes."""
    app.add_exception_handler(InvalidArgumentError, _invalid_argument)
    app.add_exception_handler(RequestValidationError, _invalid_argument)
    app.add_exception_handler(StorageError, _unavailable)

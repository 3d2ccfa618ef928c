"""Health check handler."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from tgcd import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> JSONResponse:
    db_ok = await request.app.state.tag_store.ping()
    return JSONResponse(
        status_code=200 if db_ok else 503,
        content={
            "status": "healthy" if db_ok else "degraded",
            "service": "tgcd",
            "version": __version__,
            "database": "ok" if db_ok else "unreachable",
        },
    )

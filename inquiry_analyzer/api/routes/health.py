"""Health check endpoint."""

from fastapi import APIRouter

from inquiry_analyzer import __version__

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "service": "inquiry-analyzer", "version": __version__}


@router.get("/")
async def root():
    return {"service": "inquiry-analyzer", "version": __version__}

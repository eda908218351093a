"""Health endpoint."""

from fastapi import APIRouter

VERSION = "0.1.0"

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, bool | str]:
    return {"ok": True, "version": VERSION}

"""Liveness endpoint (the ERP probe lives in /remote/check)."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Always ok while the process serves requests."""
    return {"status": "ok"}

from fastapi import APIRouter
from typing import Dict
from devevent.db.session import connector

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=Dict[str, str])
async def health_check():
    """
    Liveness check; also reports whether the storage connection is up.
    """
    return {
        "status": "healthy",
        "storage": "connected" if connector.connected else "disconnected",
    }

from fastapi import APIRouter
import time

from ....services.monitor_registry import registry

router = APIRouter()


@router.get("")
async def get_basic_health():
    """Basic service health - no database access"""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "service": "quizguard-api",
        "active_monitors": registry.active_count()
    }

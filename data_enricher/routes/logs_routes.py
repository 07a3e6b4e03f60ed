# data_enricher/routes/logs_routes.py
from fastapi import APIRouter, Query, Depends
from typing import Optional
from ..utils.diagnostics import diagnostic_buffer, get_recent_events, get_diagnostic_stats
from ..utils.performance_monitor import performance_monitor
from ..middleware.auth_middleware import get_admin_credentials

router = APIRouter(prefix="/logs", tags=["Logs & Monitoring"])


@router.get("/recent")
async def get_recent_logs(
    limit: int = Query(50, ge=1, le=1000),
    level: Optional[str] = Query(None),
    component: Optional[str] = Query(None),
    username: str = Depends(get_admin_credentials)
):
    """Recent diagnostic events, optionally filtered by level and component"""
    return get_recent_events(limit=limit, level=level, component=component)


@router.get("/stats")
async def get_stats(username: str = Depends(get_admin_credentials)):
    """Diagnostics counters plus request and pipeline performance"""
    stats = performance_monitor.get_stats()
    return {
        **stats,
        "system": performance_monitor.get_system_stats(),
        "diagnostics": get_diagnostic_stats(),
        "status": "healthy" if stats["error_rate"] < 0.1 else "warning"
    }


@router.post("/clear")
async def clear_logs(username: str = Depends(get_admin_credentials)):
    """Clear all diagnostic events"""
    diagnostic_buffer.clear()
    return {"message": "Logs cleared successfully"}

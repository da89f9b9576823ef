"""
Per-plugin API for Prayer Times. Mounted at /api/components/prayer_times/.
"""
from typing import Any, Optional

from fastapi import APIRouter, HTTPException

from masjid_display.core.models import PrayerSchedule


def get_router(display_app: Any) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/prayer_times."""
    router = APIRouter(tags=["Prayer Times"])

    @router.get("/data", response_model=PrayerSchedule)
    def get_data() -> PrayerSchedule:
        """Return today's formatted prayer list with next/current flags from the latest tick."""
        snapshot = display_app.get_snapshot()
        if snapshot is None:
            raise HTTPException(status_code=404, detail="No prayer times data available")
        return snapshot.schedule

    return router

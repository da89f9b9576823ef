"""
Per-plugin API for the prayer phase. Mounted at /api/components/prayer_phase/.
PUT /override forces a phase for testing; null clears it.
"""
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from masjid_display.core.models import PhaseState, PrayerPhase


class PhaseOverrideRequest(BaseModel):
    phase: Optional[PrayerPhase] = None


def get_router(display_app: Any) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/prayer_phase."""
    router = APIRouter(tags=["Prayer Phase"])

    @router.get("/data", response_model=PhaseState)
    def get_data() -> PhaseState:
        snapshot = display_app.get_snapshot()
        if snapshot is None:
            raise HTTPException(status_code=404, detail="No phase data available")
        return snapshot.phase

    @router.put("/override", response_model=PhaseState)
    def set_override(request: PhaseOverrideRequest) -> PhaseState:
        """Force (or with null, release) the phase, then return the state recomputed for now."""
        display_app.overrides.set_phase_override(request.phase)
        snapshot = display_app.get_snapshot()
        if snapshot is None:
            raise HTTPException(status_code=404, detail="No phase data available")
        return snapshot.phase

    return router

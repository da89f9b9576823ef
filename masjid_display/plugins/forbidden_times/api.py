"""
Per-plugin API for forbidden prayer windows. Mounted at /api/components/forbidden_times/.
"""
from typing import Any, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from masjid_display.core.models import ForbiddenState, ForbiddenWindow
from .service import get_forbidden_windows

COMPONENT_NAME = "Forbidden Times"


class ForbiddenTimesResponse(BaseModel):
    state: ForbiddenState
    windows: List[ForbiddenWindow]


def get_router(display_app: Any) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/forbidden_times."""
    router = APIRouter(tags=["Forbidden Times"])

    @router.get("/data", response_model=ForbiddenTimesResponse)
    def get_data() -> ForbiddenTimesResponse:
        """Current state from the latest tick plus all of today's windows."""
        snapshot = display_app.get_snapshot()
        if snapshot is None:
            raise HTTPException(status_code=404, detail="No forbidden times data available")
        component = display_app.get_component(COMPONENT_NAME)
        if component is None:
            windows = get_forbidden_windows(display_app.raw_times)
        else:
            windows = get_forbidden_windows(
                display_app.raw_times,
                component.sunrise_buffer_minutes,
                component.zenith_minutes_before_zuhr,
            )
        return ForbiddenTimesResponse(state=snapshot.forbidden, windows=windows)

    return router

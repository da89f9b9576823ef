"""
Per-plugin API for Ramadan mode. Mounted at /api/components/ramadan/.
PUT /override takes true, false or "auto".
"""
from typing import Any, Literal, Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from masjid_display.core.models import RamadanState


class RamadanOverrideRequest(BaseModel):
    value: Union[bool, Literal["auto"], None] = "auto"


def get_router(display_app: Any) -> Optional[APIRouter]:
    """Return router for this plugin; mounted with prefix /api/components/ramadan."""
    router = APIRouter(tags=["Ramadan Mode"])

    @router.get("/data", response_model=RamadanState)
    def get_data() -> RamadanState:
        snapshot = display_app.get_snapshot()
        if snapshot is None:
            raise HTTPException(status_code=404, detail="No Ramadan data available")
        return snapshot.ramadan

    @router.put("/override", response_model=RamadanState)
    def set_override(request: RamadanOverrideRequest) -> RamadanState:
        display_app.overrides.set_ramadan_override(request.value)
        snapshot = display_app.get_snapshot()
        if snapshot is None:
            raise HTTPException(status_code=404, detail="No Ramadan data available")
        return snapshot.ramadan

    return router

from __future__ import annotations

from fastapi import APIRouter

from iot_measurements.api.deps import Service
from iot_measurements.core.timestamps import to_iso_instant, utc_now

router = APIRouter()


@router.get("/health", tags=["meta"])
async def health(service: Service) -> dict[str, object]:
    await service.check_store_health()
    return {
        "success": True,
        "message": "Measurement API is up",
        "timestamp": to_iso_instant(utc_now()),
    }

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from iot_measurements.core.config import Settings
from iot_measurements.repositories.base import MeasurementRepository
from iot_measurements.services.measurements import MeasurementService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_measurement_repository(request: Request) -> MeasurementRepository:
    return request.app.state.measurement_repository


def get_measurement_service(
    repo: Annotated[MeasurementRepository, Depends(get_measurement_repository)],
) -> MeasurementService:
    return MeasurementService(repo)


Service = Annotated[MeasurementService, Depends(get_measurement_service)]
AppSettings = Annotated[Settings, Depends(get_settings)]

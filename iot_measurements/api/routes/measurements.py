from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, HTTPException, Query, status

from iot_measurements.api.deps import AppSettings, Service
from iot_measurements.core.errors import InvalidLimit
from iot_measurements.models.measurement import FilterCriteria, MeasurementRecord
from iot_measurements.schemas.measurements import (
    Envelope,
    ErrorResponse,
    MeasurementRead,
    MeasurementStatisticsRead,
    PurgeRead,
    RecentEnvelope,
)

router = APIRouter(
    prefix="/mediciones",
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
)


def _to_read(record: MeasurementRecord) -> MeasurementRead:
    return MeasurementRead(
        id=record.id,
        dispositivo_id=record.device_id,
        tipo=record.type,
        valor=record.value,
        timestamp=record.timestamp,
        unidad=record.unit,
        texto=record.display,
    )


def _parse_limit(raw: str | None, default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as e:
        raise InvalidLimit() from e


@router.post(
    "",
    response_model=Envelope[MeasurementRead],
    status_code=status.HTTP_201_CREATED,
)
async def create_measurement(
    service: Service,
    payload: Annotated[dict[str, Any] | None, Body()] = None,
) -> Envelope[MeasurementRead]:
    record = await service.ingest(payload)
    return Envelope[MeasurementRead](
        message="Measurement stored", data=_to_read(record)
    )


@router.get("", response_model=Envelope[MeasurementRead])
async def latest_measurement(service: Service) -> Envelope[MeasurementRead]:
    record = await service.latest()
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No measurements found",
        )
    return Envelope[MeasurementRead](data=_to_read(record))


@router.get("/recientes", response_model=RecentEnvelope)
async def recent_measurements(
    service: Service,
    settings: AppSettings,
    limite: Annotated[str | None, Query()] = None,
) -> RecentEnvelope:
    limit = _parse_limit(limite, settings.recent_default_limit)
    records = await service.recent(limit)
    return RecentEnvelope(
        data=[_to_read(r) for r in records],
        total=len(records),
        limite_aplicado=limit,
    )


@router.get("/buscar", response_model=Envelope[list[MeasurementRead]])
async def search_measurements(
    service: Service,
    dispositivo_id: Annotated[int | None, Query()] = None,
    tipo: Annotated[str | None, Query(max_length=32)] = None,
    fecha_inicio: Annotated[str | None, Query(max_length=64)] = None,
    fecha_fin: Annotated[str | None, Query(max_length=64)] = None,
    limite: Annotated[str | None, Query(max_length=16)] = None,
) -> Envelope[list[MeasurementRead]]:
    records = await service.query(
        FilterCriteria(
            device_id=dispositivo_id,
            type=tipo,
            date_from=fecha_inicio,
            date_to=fecha_fin,
            limit=limite,
        )
    )
    return Envelope[list[MeasurementRead]](data=[_to_read(r) for r in records])


@router.get("/estadisticas", response_model=Envelope[MeasurementStatisticsRead])
async def measurement_statistics(service: Service) -> Envelope[MeasurementStatisticsRead]:
    stats = await service.statistics()
    return Envelope[MeasurementStatisticsRead](
        data=MeasurementStatisticsRead(
            total_mediciones=stats.count,
            dispositivos=stats.devices,
            promedio_temperatura=stats.avg_temperature,
            promedio_gas=stats.avg_gas,
            ultima_medicion=stats.last_timestamp,
        )
    )


@router.delete("/antiguas", response_model=Envelope[PurgeRead])
async def purge_measurements(
    service: Service,
    settings: AppSettings,
    dias: Annotated[int | None, Query()] = None,
) -> Envelope[PurgeRead]:
    result = await service.purge(settings.retention_days if dias is None else dias)
    return Envelope[PurgeRead](
        message="Retention cleanup finished",
        data=PurgeRead(eliminadas=result.removed, fecha_corte=result.cutoff),
    )

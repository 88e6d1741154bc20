from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class MeasurementRead(BaseModel):
    id: int
    dispositivo_id: int
    tipo: str
    valor: float
    timestamp: str
    unidad: str | None = None
    texto: str


class MeasurementStatisticsRead(BaseModel):
    total_mediciones: int = Field(ge=0)
    dispositivos: int = Field(ge=0)
    promedio_temperatura: float | None = None
    promedio_gas: float | None = None
    ultima_medicion: str | None = None


class PurgeRead(BaseModel):
    eliminadas: int = Field(ge=0)
    fecha_corte: str


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str | None = None
    data: T


class RecentEnvelope(BaseModel):
    success: bool = True
    data: list[MeasurementRead]
    total: int
    limite_aplicado: int


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    kind: str | None = None
    available_routes: list[str] | None = None

from fastapi import APIRouter

from iot_measurements.api.routes import health, measurements

api_router = APIRouter(prefix="/api")
api_router.include_router(health.router)
api_router.include_router(measurements.router, tags=["measurements"])

AVAILABLE_ROUTES = [
    "GET    /api/health",
    "POST   /api/mediciones (body: {tipo: 'temperatura|gas', valor: number})",
    "GET    /api/mediciones (latest measurement)",
    "GET    /api/mediciones/recientes (params: ?limite=50)",
    "GET    /api/mediciones/buscar (params: dispositivo_id, tipo, fecha_inicio, fecha_fin, limite)",
    "GET    /api/mediciones/estadisticas",
    "DELETE /api/mediciones/antiguas (params: ?dias=30)",
]

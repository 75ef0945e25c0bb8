from fastapi import APIRouter
from agenda.api.v1.endpoints import auth, brands, schedule, appointments, clients, landing_data

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(brands.router, prefix="/brand", tags=["brands"])
api_router.include_router(schedule.router, prefix="/brand/{brand_id}", tags=["schedule"])
api_router.include_router(appointments.router, prefix="/brand/{brand_id}/appointments", tags=["appointments"])
api_router.include_router(clients.router, prefix="/brand/{brand_id}/clients", tags=["clients"])
api_router.include_router(landing_data.router, prefix="/landing-data", tags=["landing-data"])

from fastapi import APIRouter

from cleanflow.api.v1.endpoints import integration, locations, mappings, sync

api_router = APIRouter()
api_router.include_router(sync.router, prefix="/sync", tags=["sync"])
api_router.include_router(integration.router, prefix="/integration", tags=["integration"])
api_router.include_router(mappings.router, prefix="/mappings", tags=["mappings"])
api_router.include_router(locations.router, prefix="/locations", tags=["locations"])

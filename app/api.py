from fastapi import APIRouter

# Import module routers
from app.modules.upload.routes import router as upload_router

# Create main API router
api_router = APIRouter()

# Include module routers
api_router.include_router(upload_router, tags=["upload"])

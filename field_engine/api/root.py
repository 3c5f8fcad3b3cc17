from fastapi import APIRouter

from field_engine.core.module_fields import supported_modules

router = APIRouter()

@router.get("/")
def root():
    return {
        "name": "Field Engine",
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "modules": supported_modules(),
    }

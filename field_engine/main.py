from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as ModelValidationError

from field_engine.api.health import router as health_router
from field_engine.api.root import router as root_router
from field_engine.api.fields import router as fields_router
from field_engine.api.values import router as values_router
from field_engine.api.templates import router as templates_router
from field_engine.api.forms import router as forms_router
from field_engine.api.audit import router as audit_router
from field_engine.core.config import settings
from field_engine.core.errors import FieldEngineError
from field_engine.core.log_config import configure_logging

configure_logging(settings.LOG_LEVEL)

ERROR_STATUS = {
    "DUPLICATE_KEY": status.HTTP_409_CONFLICT,
    "IMMUTABLE_FIELD": status.HTTP_409_CONFLICT,
    "SYSTEM_FIELD_PROTECTED": status.HTTP_409_CONFLICT,
    "FIELD_IN_USE": status.HTTP_409_CONFLICT,
    "UNKNOWN_FIELD": status.HTTP_400_BAD_REQUEST,
    "TEMPLATE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "DEPENDENCY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
}

app = FastAPI(title="Field Engine")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FieldEngineError)
async def field_engine_error_handler(request: Request, exc: FieldEngineError):
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST),
        content={"detail": exc.to_dict()},
    )


# payload passed request parsing but the merged record is invalid
# (e.g. a PATCH that turns a text field into a select without options)
@app.exception_handler(ModelValidationError)
async def model_validation_error_handler(request: Request, exc: ModelValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in exc.errors()]},
    )


app.include_router(root_router)
app.include_router(health_router)
app.include_router(fields_router)
app.include_router(values_router)
app.include_router(templates_router)
app.include_router(forms_router)
app.include_router(audit_router)

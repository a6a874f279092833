import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from compliance_kb.api.v1.api import api_router
from compliance_kb.core.config import settings
from compliance_kb.core.database import engine, Base
from compliance_kb.core.exceptions import StorageError, ValidationError
import compliance_kb.models

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "errors": exc.errors})

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Knowledge base storage unavailable"})

@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)
    logger.info("Knowledge base tables ready")

@app.get("/")
async def root():
    return {"message": "Compliance Knowledge Base API is running"}

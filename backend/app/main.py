import uuid
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from .shared.config import settings
from .shared.logging import get_logger
from .auth.router import router as auth_router
from .quotations.router import router as quotations_router
from .locks.router import router as locks_router
from .audit.router import router as audit_router

log = get_logger(__name__)

app = FastAPI(
    title="QuoteDesk API", version="0.1.0", openapi_url=f"{settings.API_PREFIX}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
def database_error(request: Request, exc: SQLAlchemyError):
    trace_id = str(uuid.uuid4())
    log.error("database error on %s %s [%s]", request.method, request.url.path, trace_id, exc_info=exc)
    return JSONResponse(
        status_code=503,
        content={"code": "database_unavailable", "message": "Database error", "traceId": trace_id},
    )


@app.get(f"{settings.API_PREFIX}/healthz")
def healthz():
    return {"status": "ok", "app": "QuoteDesk"}


app.include_router(auth_router)
app.include_router(quotations_router)
app.include_router(locks_router)
app.include_router(audit_router)

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notestack import __version__
from notestack.config import CORS_ORIGINS
from notestack.database import SessionLocal, init_db
from notestack.errors import AppError, envelope
from notestack.routes.color_routes import router as color_router
from notestack.routes.file_routes import router as file_router
from notestack.routes.note_routes import router as note_router
from notestack.routes.notebook_routes import router as notebook_router
from notestack.routes.scratch_pad_routes import router as scratch_pad_router
from notestack.routes.settings_routes import router as settings_router
from notestack.routes.stack_routes import router as stack_router
from notestack.routes.tag_routes import router as tag_router
from notestack.routes.task_routes import router as task_router
from notestack.routes.user_routes import router as user_router
from notestack.services.color_service import ColorService

logger = logging.getLogger(__name__)

# Initialize db configuration
try:
    init_db()
    db = SessionLocal()
    try:
        added = ColorService.seed_defaults(db)
        if added:
            logger.info(f"Seeded {added} default colors.")
    finally:
        db.close()
except Exception as e:
    logger.error(f"Database init skipped or failed: {e}")

app = FastAPI(title="NoteStack", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(envelope(exc.msg, success=False, error=exc.error)),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(str(exc.detail), success=False),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    msg = f"Invalid value for {field}" if field else "Invalid request"
    return JSONResponse(status_code=400, content=envelope(msg, success=False, error=first.get("msg")))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=envelope("Internal server error", success=False, error=str(exc)))


@app.get("/api/v1/health-check")
async def health():
    return {"status": "ok", "message": "Backend is alive!"}


app.include_router(stack_router)
app.include_router(notebook_router)
app.include_router(note_router)
app.include_router(task_router)
app.include_router(tag_router)
app.include_router(file_router)
app.include_router(settings_router)
app.include_router(color_router)
app.include_router(scratch_pad_router)
app.include_router(user_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("notestack.main:app", host="0.0.0.0", port=8000, reload=True)

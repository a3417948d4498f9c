import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from infradiagram import __version__, config
from infradiagram.api.routes import code_router, diagram_router
from infradiagram.ir.errors import (
    DiagramError,
    GenerationError,
    LayoutError,
    NotFoundError,
    ValidationError,
)

config.configure_logging()
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    GenerationError: 422,
    LayoutError: 500,
}

app = FastAPI(
    title="Infrastructure Diagram Editor",
    version=__version__,
)

# Middleware FIRST
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(diagram_router)
app.include_router(code_router)


@app.exception_handler(DiagramError)
async def diagram_error_handler(request: Request, exc: DiagramError):
    status = ERROR_STATUS.get(type(exc), 500)
    if status >= 500:
        logger.error("[api] %s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("[api] %s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError(
        "Invalid request payload",
        details=[
            {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ],
    )
    return JSONResponse(status_code=400, content=error.to_dict())


@app.get("/health")
def health():
    return {"status": "ok"}

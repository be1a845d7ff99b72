import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from engine_api import router as engine_router
from engine_errors import EngineError
from engine_settings import EngineSettings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: EngineSettings = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title=settings.api_title)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(EngineError)
    async def engine_error_handler(request: Request, exc: EngineError):
        logger.warning(f"Rejected {request.url.path}: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/")
    def read_root():
        return {"message": f"{settings.api_title} is running"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(engine_router)
    return app


app = create_app()

import asyncio
from contextlib import asynccontextmanager
from typing import Awaitable

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import load_settings
from dispatcher import Dispatcher
from errors import AnalysisError
from logger import configure_logging, get_logger
from models import AnalysisResult, AudioAnalysisRequest, ImageAnalysisRequest, TextAnalysisRequest

logger = get_logger(__name__)

# How often an in-flight analysis checks whether its client went away
DISCONNECT_POLL_SEC = 0.5


class ClientDisconnected(Exception):
    pass


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


async def run_until_disconnect(request: Request, analysis: Awaitable[AnalysisResult]) -> AnalysisResult:
    """Await the analysis, cancelling it if the client disconnects first."""
    task = asyncio.ensure_future(analysis)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SEC)
            if done:
                return task.result()
            if await request.is_disconnected():
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()


async def handle_analysis(request: Request, media_type: str, analysis: Awaitable[AnalysisResult]) -> JSONResponse:
    """Run one analysis and turn every failure into an {"error": ...} response."""
    try:
        result = await run_until_disconnect(request, analysis)
    except AnalysisError as e:
        logger.warning("analysis_failed", media_type=media_type, status=e.status_code,
                       error_class=type(e).__name__, error=e.message)
        return error_response(e.message, e.status_code)
    except ClientDisconnected:
        logger.info("analysis_cancelled", media_type=media_type)
        return error_response("Client disconnected", 499)
    except Exception as e:
        logger.exception("analysis_crashed", media_type=media_type, error=str(e))
        return error_response(str(e) or "Unknown error occurred", 500)
    return JSONResponse(content=result.model_dump())


def create_app(dispatcher: Dispatcher = None) -> FastAPI:
    """
    Build the application.

    Without an explicit dispatcher, settings are loaded from the environment
    during startup, so a missing API key stops the server before it accepts
    requests.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "dispatcher", None) is None
        if owned:
            settings = load_settings()
            configure_logging(settings.log_level, settings.log_format)
            app.state.dispatcher = Dispatcher(settings)
        logger.info("service_started", provider=app.state.dispatcher.settings.provider,
                    model=app.state.dispatcher.backend.model)
        yield
        if owned:
            await app.state.dispatcher.aclose()

    app = FastAPI(title="AuthentiCheck", lifespan=lifespan)
    app.state.dispatcher = dispatcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response("Request body must be a JSON object", 400)

    @app.post("/analyze-text")
    async def analyze_text(request: Request, body: TextAnalysisRequest,
                           dispatcher: Dispatcher = Depends(get_dispatcher)) -> JSONResponse:
        """Classify a piece of text as AI or human written"""
        return await handle_analysis(request, "text", dispatcher.analyze_text(body.text))

    @app.post("/analyze-image")
    async def analyze_image(request: Request, body: ImageAnalysisRequest,
                            dispatcher: Dispatcher = Depends(get_dispatcher)) -> JSONResponse:
        """Classify an image (data URI or URL) as AI generated or a real photograph"""
        return await handle_analysis(request, "image", dispatcher.analyze_image(body.imageData))

    @app.post("/analyze-audio")
    async def analyze_audio(request: Request, body: AudioAnalysisRequest,
                            dispatcher: Dispatcher = Depends(get_dispatcher)) -> JSONResponse:
        """Classify an audio clip as synthetic or a human recording"""
        return await handle_analysis(request, "audio",
                                     dispatcher.analyze_audio(body.audioData, body.fileName))

    @app.get("/health")
    async def health_check(dispatcher: Dispatcher = Depends(get_dispatcher)):
        """Health check endpoint"""
        return {
            "status": "healthy",
            "provider": dispatcher.settings.provider,
            "model": dispatcher.backend.model,
        }

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)

"""HTTP transport for the scanner agent."""

import json
import logging
import sys

import uvicorn
from dotenv import load_dotenv
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from agent.gemini import GeminiClient
from agent.handler import A2ARequest, AgentService, build_error
from secret_scanner.config import Settings, setup_logging
from secret_scanner.errors import ConfigError, ScanError
from secret_scanner.main import build_orchestrator

logger = logging.getLogger(__name__)

A2A_ROUTE = "/a2a/agent/githubScanner"


def create_app(service: AgentService) -> FastAPI:
    app = FastAPI(title="GitHub Secret Scanner Agent")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": "secret-detector"}

    @app.post(A2A_ROUTE)
    async def handle_a2a_request(request: Request, background_tasks: BackgroundTasks):
        body = await request.body()
        try:
            a2a_request = A2ARequest.model_validate(json.loads(body))
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to parse A2A request: {e}")
            return JSONResponse(
                status_code=400,
                content={"error": f"Invalid request format: {e}"},
            )

        if a2a_request.is_blocking:
            try:
                return await run_in_threadpool(service.process_request, a2a_request)
            except ScanError as e:
                logger.error(f"Request processing failed: {e}")
                return build_error(a2a_request.id, str(e))
            except Exception as e:
                logger.exception("Unexpected error processing request")
                return build_error(a2a_request.id, str(e))

        push = a2a_request.push_config
        if push is None or not push.url:
            logger.error("Non-blocking request but no webhook URL provided")
            return JSONResponse(
                status_code=400,
                content={"error": "Non-blocking mode requires webhook URL"},
            )

        logger.info(f"Non-blocking request, will send response to webhook: {push.url}")
        background_tasks.add_task(service.process_and_notify, a2a_request, push.url, push.token)
        return JSONResponse(
            status_code=202,
            content={
                "jsonrpc": "2.0",
                "id": a2a_request.id,
                "result": {"status": "processing"},
            },
        )

    return app


def build_service(settings: Settings) -> AgentService:
    orchestrator = build_orchestrator(settings)
    generator = GeminiClient(settings.require_gemini_key(), settings.gemini_model)
    return AgentService(orchestrator, generator)


def serve(settings: Settings) -> None:
    try:
        service = build_service(settings)
    except (ConfigError, ScanError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    logger.info(f"Starting server on {settings.host}:{settings.port}")
    uvicorn.run(create_app(service), host=settings.host, port=settings.port)


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    serve(settings)


if __name__ == "__main__":
    main()

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from beanie import init_beanie

import config
from models import db, client, ALL_MODELS
from api.api_router import api_router

logger = config.setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_beanie(
        database=db,
        document_models=ALL_MODELS,
    )

    scheduler = None
    if config.QUEUE_SCHEDULER_ENABLED:
        from utils.scheduler import start_queue_scheduler
        scheduler = start_queue_scheduler()

    yield

    if scheduler:
        scheduler.shutdown(wait=False)
    client.close()


app = FastAPI(
    lifespan=lifespan,
    title="aqua_buddy",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

app.include_router(api_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request body"})


@app.get("/healthcheck", status_code=200)
async def healthcheck():
    return {"status": "ok"}

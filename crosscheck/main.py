import sys
from typing import Any

import fastapi
import uvicorn

from fastapi import Depends, FastAPI
from fastapi.responses import PlainTextResponse

from crosscheck.config import Settings
from crosscheck.dependencies import settings_dependency
from crosscheck.routes import router as review_router


app = FastAPI(title="Code Crosscheck")

app.include_router(review_router, tags=["review"])


@app.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "pong"


@app.get("/health")
def health(settings: Settings = Depends(settings_dependency)) -> dict[str, Any]:
    return {
        "status": "Code Crosscheck is operational and ready to route reviews across model families.",
        "review": {
            "default strategy": settings.default_strategy.value,
            "metrics scale": f"1-{settings.metrics_scale}",
            "reviewer models": settings.reviewer_models,
            "sampling configured": bool(settings.reviewer_api_key),
        },
        "environment": {
            "python version": sys.version,
            "fastapi version": fastapi.__version__,
            "uvicorn version": uvicorn.__version__,
        },
    }

import logging

from fastapi import FastAPI
import uvicorn
from fastapi.middleware.cors import CORSMiddleware

from stock_insight.api.errors import install_api_error_handlers
from stock_insight.api.v1.router import api_router
from stock_insight.core.config import settings


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    application = FastAPI(title="Stock Insight API", version="0.1.0")
    install_api_error_handlers(application)

    application.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(api_router, prefix="/api/v1")

    return application


configure_logging()
app = create_app()


if __name__ == "__main__":
    uvicorn.run("stock_insight.main:app", host="0.0.0.0", port=8000, reload=True)

# calsync/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from calsync.api.api import api_router
from calsync.core.config import settings
from calsync.core.error_handlers import register_exception_handlers
from calsync.core.logging import setup_logging
from calsync.core.middleware import register_middlewares
from calsync.services import register_services

# Set up the logger at the start
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Calsync API {app.version} ({settings.ENVIRONMENT})")

    register_services()
    logger.info("Services registered")

    yield

    logger.info("Shutting down application")


app = FastAPI(
    title="Calsync API",
    description="Two-way sync between application events and Google Calendar",
    version="0.1.0",
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

# Register middleware
register_middlewares(app)

if settings.BACKEND_CORS_ORIGINS:
    allowed_origins = [str(origin) for origin in settings.BACKEND_CORS_ORIGINS]
    logger.info(f"Setting up CORS with allowed origins: {allowed_origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    return {"message": "Welcome to the Calsync API"}


def create_app():
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

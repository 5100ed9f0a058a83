"""
FastAPI application entry point
"""
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from api.middleware import RequestIDMiddleware
from api.routes import config as config_routes
from core.config import Configuration, load_configuration
from core.exceptions import register_exception_handlers
from core.logging_config import configure_logging, get_logger
from core.response import success_response


DEFAULT_CONFIG_PATH = "fileshare.toml"

logger = get_logger(__name__)


def load_configuration_from_env() -> Configuration:
    """Load the configuration file named by FILESHARE_CONFIG."""
    return load_configuration(os.getenv("FILESHARE_CONFIG", DEFAULT_CONFIG_PATH))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    config: Configuration = app.state.config
    for line in str(config).splitlines():
        logger.info("config_summary", line=line)
    logger.info(
        "application_startup",
        server_url=config.get_server_url().geturl(),
        auto_clean=config.is_auto_clean(),
    )
    yield
    logger.info("application_shutdown")


def create_app(config: Optional[Configuration] = None) -> FastAPI:
    """Build the application around an initialized configuration.

    Configuration errors propagate: startup aborts rather than running with
    a partially valid configuration.
    """
    if config is None:
        config = load_configuration_from_env()

    configure_logging(config.get_log_level())

    app = FastAPI(
        title="File sharing server",
        debug=config.debug,
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(RequestIDMiddleware, source_ip_header=config.source_ip_header)

    register_exception_handlers(app)

    # Everything is served below the configured base path
    app.include_router(config_routes.router, prefix=f"{config.path}/api/v1")

    @app.get(f"{config.path}/health", tags=["Health"])
    async def health_check():
        return success_response(data={"status": "healthy"})

    return app


if __name__ == "__main__":
    import uvicorn

    configuration = load_configuration_from_env()
    ssl_options = {}
    if configuration.ssl_enabled:
        ssl_options = {
            "ssl_certfile": configuration.ssl_cert,
            "ssl_keyfile": configuration.ssl_key,
        }
    uvicorn.run(
        create_app(configuration),
        host=configuration.listen_address,
        port=configuration.listen_port,
        log_level=configuration.get_log_level().lower(),
        **ssl_options,
    )

import logging

from fastapi import (
    FastAPI,
)
from fastapi.middleware.cors import CORSMiddleware

from paygate.middleware import RateLimit, SecurityHeaders
from paygate.routers import get_routers
from paygate.shared import Logger, load_config
from paygate.shared.http import register_exception_handlers

logger = Logger(__name__, level=logging.DEBUG).get_logger()

config = load_config()


# ================================================================================
#       FastAPI Setup
# ================================================================================
def create_app(rate_limit: bool = True) -> FastAPI:
    app = FastAPI(title="PayGate")

    for router in get_routers():
        app.include_router(router)

    @app.get("/")
    def index():
        return {"message": "PayGate payment review API is running"}

    register_exception_handlers(app)

    # Starlette runs the last added middleware first
    app.add_middleware(SecurityHeaders)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.network.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
    )

    if rate_limit:
        app.add_middleware(RateLimit)

    return app


app = create_app()


# ================================================================================
#       Command Line
# ================================================================================
def welcome():
    # Log server banner
    for line in config.general.title.split("\n"):
        logger.info(line)

    # Log server startup information
    logger.info("Starting payment review server")


def main(argv=None):
    welcome()

    import uvicorn

    uvicorn.run(
        "paygate.main:app",
        host=config.network.host,
        port=config.network.port,
        reload=config.network.reload,
    )


if __name__ == "__main__":
    main()

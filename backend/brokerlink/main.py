from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from brokerlink import __version__
from brokerlink.brokers.upstox import UpstoxOAuthClient
from brokerlink.core.config import DEFAULT_SECRET_KEY, Settings, get_settings
from brokerlink.core.database import Database
from brokerlink.core.exceptions import ServiceError
from brokerlink.core.security import EncryptionManager
from brokerlink.routes import auth, broker


async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


def create_app(
    settings: Optional[Settings] = None,
    upstox_client: Optional[UpstoxOAuthClient] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logging.basicConfig(level=settings.LOG_LEVEL.upper())
        logger = logging.getLogger("startup")
        logger.info("[STARTUP] FastAPI startup event triggered.")
        if settings.SECRET_KEY == DEFAULT_SECRET_KEY:
            logger.warning("[STARTUP] SECRET_KEY is the built-in placeholder; set it before deploying.")

        app.state.settings = settings
        app.state.encryption_manager = EncryptionManager.from_settings(settings)
        app.state.upstox_client = upstox_client or UpstoxOAuthClient.from_settings(settings)
        database = Database(settings.DATABASE_URL)
        database.create_all()
        app.state.database = database
        logger.info("[STARTUP] Database ready.")

        yield

        # Shutdown
        logger.info("[SHUTDOWN] FastAPI shutdown event triggered.")
        database.dispose()
        logger.info("[SHUTDOWN] Database connections closed.")

    app = FastAPI(
        title="BrokerLink",
        description="Platform authentication and Upstox broker connections",
        version=__version__,
        docs_url="/swagger",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(auth.router)
    app.include_router(broker.router)

    @app.get("/")
    def root(request: Request):
        """Server and database status"""
        try:
            request.app.state.database.ping()
            return {"status": "Server Running", "dbStatus": "Connected"}
        except Exception as e:
            logging.getLogger("health").error(f"Database ping failed: {e}")
            return {"status": "Server Running", "dbStatus": "Connection Failed", "error": str(e)}

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower())

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from repokit.config import settings
from repokit.middleware.logging_md import LoggingMiddleware
from repokit.logging.logger import LogConfig
from repokit.exceptions.handler import BusinessException, global_exception_handler
from repokit.repository.exceptions import RepositoryError
from repokit.database.manager import DatabaseManager
from apps.orders.api.router import router as order_router
import apps.models  # noqa: F401  register tables

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the database and create missing tables; dispose the pool on shutdown."""
    manager = DatabaseManager.get_instance()
    await manager.sql.connect()
    await manager.sql.create_all()
    yield
    await manager.sql.disconnect()

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# Initialize logging configuration
LogConfig.setup_logging()

# Register global exception handlers
app.add_exception_handler(BusinessException, global_exception_handler)
app.add_exception_handler(RepositoryError, global_exception_handler)
app.add_exception_handler(RequestValidationError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(LoggingMiddleware)

# Mount routers (prefix from config)
app.include_router(
    order_router,
    prefix=settings.API_V1_ORDERS_PREFIX,
    tags=["Orders"]
)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

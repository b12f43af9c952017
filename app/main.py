from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.config import get_settings
from app.database import engine, Base
from app.api import auth, products, health
from app.api.errors import register_error_handlers
from app.middleware import ApiResponseMiddleware

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")

    # Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    yield

    # Shutdown
    logger.info("Shutting down application...")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    A small e-commerce backend with:

    - **Authentication**: Registration, login and logout with opaque bearer tokens
    - **Product Management**: CRUD operations gated by role-based policies
    - **Rate Limiting**: Per-user request quota per minute, backed by Redis
    - **Background Tasks**: Celery worker for welcome e-mails

    ## Features

    ### Stock-Driven Pricing
    Whenever a product is created or updated its price is adjusted from the
    stock level: 10 units or fewer raises the price by 10%, 100 units or more
    lowers it by 5%.

    ### Uniform Responses
    Every API response has the shape `{status_code, message, result}`.
    Paginated lists put `items` and `meta` under `result`.
    """,
    version=settings.VERSION,
    contact={
        "name": "API Support",
        "email": "support@example.com"
    },
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Wrap API responses in the standard envelope
app.add_middleware(ApiResponseMiddleware, prefix=settings.API_PREFIX)

register_error_handlers(app)

# Include API routers
app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(products.router, prefix=settings.API_PREFIX)


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": f"{settings.API_PREFIX}/health"
    }

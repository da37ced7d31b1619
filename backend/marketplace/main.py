import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from marketplace import config
from marketplace.database import engine
from marketplace.errors import MarketplaceError
from marketplace.models.base import Base
import marketplace.models  # noqa: F401 - register every table for create_all
from marketplace.api.endpoints import admin, distances, jobs, offers, orders, products, profiles, quotes, rfqs
from marketplace.services.file_service import ensure_upload_dir

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.RESET_DB_ON_STARTUP:
        logger.warning("RESET_DB_ON_STARTUP set: dropping all tables")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    ensure_upload_dir()
    yield


app = FastAPI(title="Marketplace API", version="0.1.0", lifespan=lifespan)

# Serve uploaded invoices and PODs at /static/<filename>
app.mount(
    config.STATIC_URL_PREFIX,
    StaticFiles(directory=str(config.UPLOAD_DIR), check_dir=False),
    name="static",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    logger.warning("%s %s -> %s %s: %s", request.method, request.url.path, exc.status_code, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "error": exc.code})


app.include_router(admin.router)
app.include_router(profiles.router)
app.include_router(rfqs.router)
app.include_router(quotes.router)
app.include_router(offers.router)
app.include_router(orders.router)
app.include_router(jobs.router)
app.include_router(distances.router)
app.include_router(products.router)


@app.get("/health")
def health():
    """Health check endpoint for load balancers and readiness checks."""
    return {"status": "ok", "service": "marketplace-backend"}

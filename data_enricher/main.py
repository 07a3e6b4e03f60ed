# data_enricher/main.py
from fastapi import FastAPI
from .config import LOG_LEVEL, LOG_FILE
from .routes import enrich_routes, logs_routes
from .middleware.logging_middleware import LoggingMiddleware
from .utils.logger import setup_logger

# Setup logging
logger = setup_logger(
    level=LOG_LEVEL,
    log_file=LOG_FILE,
    enable_console=True,
    enable_colors=True
)

# Create FastAPI app
app = FastAPI(
    title="Data Enricher",
    description="Joins a master contact base with a list of CPFs and exports the enriched records.",
    version="1.0.0",
)

# Add middleware
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(enrich_routes.router)
app.include_router(logs_routes.router)

logger.info("Data Enricher started")


@app.get("/")
def root():
    return {
        "ok": True,
        "service": "Data Enricher",
        "version": "1.0.0",
    }


@app.get("/healthz")
def healthz():
    return {"ok": True, "status": "healthy"}

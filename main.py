import uvicorn
import time
import logging
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from ciwatch.api.status import router as status_router
from ciwatch.core import config
from ciwatch.utils.logging_config import setup_logging

# Initialize enhanced logging
setup_logging(level=logging.DEBUG if config.DEBUG else logging.INFO, log_dir=config.LOG_DIR)
logger = logging.getLogger("main")

app = FastAPI(title="ciwatch: GitHub Actions status API")

# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    """One access line per request, including the filter/log options that decide GitHub load."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        query = f"?{request.url.query}" if request.url.query else ""
        logger.info(
            "%s %s%s -> %d (%.1fms)",
            request.method, request.url.path, query, response.status_code, elapsed_ms,
        )
        return response

app.add_middleware(LoggingMiddleware)

# Health endpoint
@app.get("/health")
async def health_check():
    return {"status": "ok"}

# Register routers
app.include_router(status_router, tags=["Runs"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)

# data_enricher/middleware/logging_middleware.py
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from ..utils.logger import get_logger
from ..utils.performance_monitor import performance_monitor

logger = get_logger("data_enricher.middleware")

SLOW_REQUEST_SECONDS = 5.0


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with an ID and timing and feeds the performance monitor"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            f"Request Started | ID: {request_id} | {request.method} {request.url.path} | "
            f"IP: {client_ip}"
        )
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            response_time = time.time() - start_time
            performance_monitor.increment_request(response_time, is_error=True)
            logger.error(
                f"Request Failed | ID: {request_id} | {request.method} {request.url.path} | "
                f"Error: {e} | Time: {response_time:.3f}s",
                extra={"payload": {"request_id": request_id, "path": request.url.path,
                                   "error": str(e)}}
            )
            raise

        response_time = time.time() - start_time
        performance_monitor.increment_request(response_time, is_error=response.status_code >= 500)

        logger.info(
            f"HTTP {request.method} {request.url.path} | Status: {response.status_code} | "
            f"Response Time: {response_time:.3f}s | ID: {request_id}",
            extra={"payload": {"request_id": request_id, "method": request.method,
                               "path": request.url.path, "status": response.status_code,
                               "seconds": round(response_time, 3)}}
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{response_time:.3f}s"

        if response_time > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow Request | ID: {request_id} | {request.method} {request.url.path} | "
                f"Time: {response_time:.3f}s | Threshold: {SLOW_REQUEST_SECONDS}s"
            )

        return response

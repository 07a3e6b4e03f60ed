# data_enricher/utils/performance_monitor.py
import time
import psutil
import threading
from contextlib import contextmanager
from typing import Dict, Any
from ..utils.logger import get_logger

logger = get_logger("data_enricher.performance")


class PerformanceMonitor:
    """Request and pipeline counters plus system resource usage"""

    def __init__(self):
        self.start_time = time.time()
        self.request_count = 0
        self.error_count = 0
        self.total_response_time = 0.0
        self.operations: Dict[str, Dict[str, float]] = {}
        self.lock = threading.Lock()

    def increment_request(self, response_time: float, is_error: bool = False):
        """Increment request counters"""
        with self.lock:
            self.request_count += 1
            self.total_response_time += response_time
            if is_error:
                self.error_count += 1

    def record_operation(self, name: str, duration: float, success: bool = True):
        """Accumulate timings for a named pipeline operation"""
        with self.lock:
            op = self.operations.setdefault(
                name, {"count": 0, "failures": 0, "total_seconds": 0.0}
            )
            op["count"] += 1
            op["total_seconds"] += duration
            if not success:
                op["failures"] += 1

    def get_stats(self) -> Dict[str, Any]:
        """Get current performance statistics"""
        with self.lock:
            uptime = time.time() - self.start_time
            avg_response_time = (
                self.total_response_time / self.request_count
                if self.request_count > 0 else 0
            )
            error_rate = (
                self.error_count / self.request_count
                if self.request_count > 0 else 0
            )
            operations = {
                name: {
                    **op,
                    "avg_seconds": op["total_seconds"] / op["count"] if op["count"] else 0
                }
                for name, op in self.operations.items()
            }

            return {
                "uptime_seconds": uptime,
                "uptime_human": self._format_uptime(uptime),
                "total_requests": self.request_count,
                "error_count": self.error_count,
                "error_rate": error_rate,
                "avg_response_time": avg_response_time,
                "operations": operations,
            }

    def get_system_stats(self) -> Dict[str, Any]:
        """Get system resource statistics"""
        try:
            memory = psutil.virtual_memory()
            process_memory = psutil.Process().memory_info().rss

            return {
                "cpu_percent": psutil.cpu_percent(interval=None),
                "memory_percent": memory.percent,
                "memory_used_gb": round(memory.used / (1024**3), 2),
                "process_memory_mb": round(process_memory / (1024**2), 2),
            }
        except Exception as e:
            logger.error(f"Failed to get system stats: {e}")
            return {}

    def reset(self):
        with self.lock:
            self.start_time = time.time()
            self.request_count = 0
            self.error_count = 0
            self.total_response_time = 0.0
            self.operations.clear()

    def _format_uptime(self, seconds: float) -> str:
        """Format uptime in human readable format"""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            return f"{seconds/60:.1f}m"
        elif seconds < 86400:
            return f"{seconds/3600:.1f}h"
        else:
            return f"{seconds/86400:.1f}d"


# Global performance monitor instance
performance_monitor = PerformanceMonitor()


@contextmanager
def monitor_operation(operation_name: str):
    """Context manager to time a pipeline operation"""
    start_time = time.time()
    success = False
    try:
        yield
        success = True
    finally:
        duration = time.time() - start_time
        performance_monitor.record_operation(operation_name, duration, success)
        logger.debug(
            f"Performance | Operation: {operation_name} | Duration: {duration:.3f}s | "
            f"Success: {success}",
            extra={"payload": {"operation": operation_name,
                               "seconds": round(duration, 3), "success": success}}
        )

# data_enricher/utils/logger.py
import logging
import sys
from datetime import datetime
from typing import Optional
from pathlib import Path
from logging.handlers import RotatingFileHandler
from .diagnostics import DiagnosticBuffer, diagnostic_buffer

ROOT_LOGGER_NAME = "data_enricher"

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels"""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        # Color a copy so other handlers still see the plain level name
        original = record.levelname
        if original in self.COLORS:
            record.levelname = f"{self.COLORS[original]}{original}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class DiagnosticsHandler(logging.Handler):
    """Copies log records into the diagnostics buffer as structured events"""

    def __init__(self, buffer: DiagnosticBuffer):
        super().__init__()
        self.buffer = buffer

    def emit(self, record):
        try:
            self.buffer.add_event(
                level=record.levelname,
                component=record.name,
                message=record.getMessage(),
                payload=getattr(record, "payload", None),
                timestamp=datetime.fromtimestamp(record.created).strftime(DATE_FORMAT)
            )
        except Exception:
            self.handleError(record)


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    enable_console: bool = True,
    enable_colors: bool = True,
    buffer: Optional[DiagnosticBuffer] = diagnostic_buffer
) -> logging.Logger:
    """
    Setup the application logger

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup files to keep
        enable_console: Enable console logging
        enable_colors: Enable colored console output
        buffer: Diagnostics buffer that receives every record (None to disable)
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    logger.handlers.clear()

    if enable_console:
        formatter_cls = ColoredFormatter if enable_colors else logging.Formatter
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter_cls(LOG_FORMAT, datefmt=DATE_FORMAT))
        console_handler.setLevel(getattr(logging, level.upper()))
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        file_handler.setLevel(logging.DEBUG)  # File always logs everything
        logger.addHandler(file_handler)

    if buffer is not None:
        diagnostics_handler = DiagnosticsHandler(buffer)
        diagnostics_handler.setLevel(logging.DEBUG)
        logger.addHandler(diagnostics_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger below the application root"""
    return logging.getLogger(name)


def log_file_upload(logger: logging.Logger, filename: str, file_size: int,
                    file_type: str, success: bool, error: str = None):
    """Log file upload events"""
    payload = {"filename": filename, "size_bytes": file_size, "content_type": file_type}
    if success:
        logger.info(
            f"File Upload Success | Name: {filename} | Size: {file_size} bytes | "
            f"Type: {file_type}",
            extra={"payload": payload}
        )
    else:
        payload["error"] = error
        logger.error(
            f"File Upload Failed | Name: {filename} | Size: {file_size} bytes | "
            f"Type: {file_type} | Error: {error}",
            extra={"payload": payload}
        )


def log_parsing(logger: logging.Logger, parser_type: str, items_count: int,
                processing_time: float, success: bool, error: str = None):
    """Log parsing operations"""
    payload = {"parser": parser_type, "items": items_count,
               "seconds": round(processing_time, 3)}
    if success:
        logger.info(
            f"Parsing Success | Type: {parser_type} | Items: {items_count} | "
            f"Time: {processing_time:.3f}s",
            extra={"payload": payload}
        )
    else:
        payload["error"] = error
        logger.error(
            f"Parsing Failed | Type: {parser_type} | Time: {processing_time:.3f}s | "
            f"Error: {error}",
            extra={"payload": payload}
        )


def log_enrichment(logger: logging.Logger, total: int, matched: int,
                   lookup_size: int, processing_time: float):
    """Log the outcome of one enrichment pass"""
    logger.info(
        f"Enrichment Complete | Matched: {matched} of {total} | "
        f"Lookup Keys: {lookup_size} | Time: {processing_time:.3f}s",
        extra={"payload": {"total": total, "matched": matched,
                           "lookup_size": lookup_size,
                           "seconds": round(processing_time, 3)}}
    )

"""
Structured Logging

All logs are JSON lines with consistent, queryable fields.
Query logs by: module, action, request_id, attempt.

EXAMPLE QUERIES
===============
# All errors
{project="inquiry-analyzer"} | json | level="ERROR"

# Follow one inquiry end-to-end
{project="inquiry-analyzer"} | json | request_id="<id>"

# Which repair strategies are rescuing model output
{project="inquiry-analyzer"} | json | module="llm.parser" action=~"repair_.*"

# LLM latency per attempt
{project="inquiry-analyzer"} | json | action="llm_response"

USAGE
=====
from inquiry_analyzer.utils.logging import log, get_logger, configure_logging

logger = get_logger()
log.info(logger, "invoker", "attempt_start", "Calling model",
         request_id=request_id, attempt=2)

log.error(logger, "invoker", "analyze_failed", "All attempts failed",
          error=str(e), error_type=type(e).__name__)

ACTION NAMING
=============
  *_start  → beginning of an operation
  *_done  → successful completion
  *_failed  → error/failure
  *_skipped  → intentionally skipped
  *_fallback  → falling back to alternative path
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


class StructuredFormatter(logging.Formatter):
    """JSON formatter. Third-party records are wrapped as module="legacy"."""

    def __init__(self, pretty: bool = False):
        super().__init__()
        self.pretty = pretty

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()

        if getattr(record, "_structured", False):
            data = {
                "ts": _timestamp(),
                "level": record.levelname,
                "module": record._module,
                "action": record._action,
                "msg": msg,
            }
            for key, value in record._extra.items():
                if value is not None:
                    data[key] = value
        else:
            data = {
                "ts": _timestamp(),
                "level": record.levelname,
                "module": "legacy",
                "action": record.name,
                "msg": msg,
            }

        if record.exc_info and not self.pretty:
            data["exc"] = self.formatException(record.exc_info)

        if self.pretty:
            return self._pretty(data)
        return json.dumps(data, default=str, separators=(",", ":"), ensure_ascii=False)

    def _pretty(self, data: dict) -> str:
        """Human-readable format for development."""
        ts = data["ts"][11:23]
        lvl = data["level"][0]
        mod = data["module"].upper()[:12].ljust(12)
        act = data["action"]
        msg = data["msg"]

        skip = {"ts", "level", "module", "action", "msg"}
        ctx = " ".join(f"{k}={v}" for k, v in data.items() if k not in skip)

        return f"{ts} {lvl} [{mod}] {act}: {msg}" + (f" | {ctx}" if ctx else "")


class StructuredLogger:
    """
    Centralized structured logging.

    Every method takes a stdlib logger, a module name, an action name,
    a message, and arbitrary context fields. None-valued fields are dropped.
    """

    def _log(
        self,
        logger: logging.Logger,
        level: int,
        module: str,
        action: str,
        msg: str,
        **kwargs,
    ) -> None:
        extra = {
            "_structured": True,
            "_module": module,
            "_action": action,
            "_extra": {k: v for k, v in kwargs.items() if v is not None},
        }
        logger.log(level, msg, extra=extra)

    def info(self, logger: logging.Logger, module: str, action: str, msg: str, **kwargs) -> None:
        self._log(logger, logging.INFO, module, action, msg, **kwargs)

    def warning(self, logger: logging.Logger, module: str, action: str, msg: str, **kwargs) -> None:
        self._log(logger, logging.WARNING, module, action, msg, **kwargs)

    def error(
        self,
        logger: logging.Logger,
        module: str,
        action: str,
        msg: str,
        error: Optional[str] = None,
        error_type: Optional[str] = None,
        **kwargs,
    ) -> None:
        """Log ERROR level with the error text and type as first-class fields."""
        self._log(
            logger, logging.ERROR, module, action, msg,
            error=error, error_type=error_type, **kwargs,
        )

    def debug(self, logger: logging.Logger, module: str, action: str, msg: str, **kwargs) -> None:
        self._log(logger, logging.DEBUG, module, action, msg, **kwargs)


# Singleton instance, import this everywhere
log = StructuredLogger()

_default_logger = None


def get_logger() -> logging.Logger:
    """Get the shared project logger."""
    global _default_logger
    if _default_logger is None:
        _default_logger = logging.getLogger("inquiry-analyzer")
    return _default_logger


def configure_logging() -> None:
    """Configure root logger with structured formatter. Call once at startup.

    Reads from environment:
      LOG_FORMAT: "json" (default) or "pretty" (for development)
      LOG_LEVEL: "INFO" (default), "DEBUG", "WARNING", "ERROR"
    """
    pretty = os.environ.get("LOG_FORMAT", "json") == "pretty"
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter(pretty=pretty))

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    # LangChain / OpenAI SDK are very chatty at DEBUG
    for name in ("langchain", "langchain_core", "langchain_openai", "openai"):
        logging.getLogger(name).setLevel(logging.WARNING)

    # HTTP clients
    for name in ("httpx", "httpcore", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("asyncio").setLevel(logging.WARNING)

"""Per-test structured logging on top of the standard logging module.

``TestLogger`` prefixes every record with a context (usually the test name),
adds the ``SUCCESS`` and ``STEP`` levels used by test steps and reporters, and
mirrors records as JSON lines into ``test-results/logs`` when ``LOG_TO_FILE``
is set.
"""

import json
import logging
import os
import time
from datetime import date, datetime
from pathlib import Path
from typing import Any, MutableMapping, Optional, Tuple

STEP = 22
SUCCESS = 25

logging.addLevelName(STEP, "STEP")
logging.addLevelName(SUCCESS, "SUCCESS")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER_NAME = "e2e_framework"

_file_handler: Optional[logging.Handler] = None


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes")


class JsonLinesFormatter(logging.Formatter):
    """Format records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "context": getattr(record, "context", record.name),
            "message": getattr(record, "raw_message", record.getMessage()),
            "data": getattr(record, "data", None),
        }
        return json.dumps(entry, default=str)


def install_file_handler(log_dir: Path = Path("test-results/logs")) -> logging.Handler:
    """Attach the JSON-lines file handler to the framework logger once.

    Args:
        log_dir: Directory receiving ``test-YYYY-MM-DD.log`` files

    Returns:
        The installed handler
    """
    global _file_handler
    if _file_handler is not None:
        return _file_handler

    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(
        log_dir / f"test-{date.today().isoformat()}.log", encoding="utf-8"
    )
    handler.setFormatter(JsonLinesFormatter())
    logging.getLogger(ROOT_LOGGER_NAME).addHandler(handler)
    _file_handler = handler
    return handler


def configure_logging(verbose: bool = False) -> None:
    """Configure console logging for CLI and test runs.

    Debug output is enabled by ``verbose`` or the ``DEBUG`` environment
    variable. File output is enabled by ``LOG_TO_FILE``.
    """
    debug = verbose or bool(os.getenv("DEBUG"))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
    )
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.DEBUG if debug else logging.INFO)

    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    if _env_flag("LOG_TO_FILE"):
        install_file_handler()


class TestLogger(logging.LoggerAdapter):
    """Logger bound to a test or component context.

    Example:
        logger = TestLogger("checkout flow")
        logger.step("Open cart")
        logger.info("Cart loaded", data={"items": 3})
        logger.success("Order placed")
    """

    __test__ = False

    def __init__(self, context: str, logger: Optional[logging.Logger] = None):
        super().__init__(logger or logging.getLogger(f"{ROOT_LOGGER_NAME}.tests"), {})
        self.context = context
        if _env_flag("LOG_TO_FILE"):
            install_file_handler()

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        data = kwargs.pop("data", None)
        extra = dict(kwargs.get("extra") or {})
        extra.update({"context": self.context, "raw_message": str(msg), "data": data})
        kwargs["extra"] = extra

        text = f"[{self.context}] {msg}"
        if data is not None:
            if isinstance(data, (dict, list)):
                text = f"{text} {json.dumps(data, default=str)}"
            else:
                text = f"{text} {data}"
        return text, kwargs

    def warn(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.warning(msg, *args, **kwargs)

    def success(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(SUCCESS, msg, *args, **kwargs)

    def step(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(STEP, msg, *args, **kwargs)

    def custom(self, level: str, msg: Any, *args: Any, **kwargs: Any) -> None:
        """Log with a level given by name; unknown names log at INFO."""
        level_no = logging.getLevelName(level.upper())
        if not isinstance(level_no, int):
            msg = f"[{level.upper()}] {msg}"
            level_no = logging.INFO
        self.log(level_no, msg, *args, **kwargs)

    def child(self, additional_context: str) -> "TestLogger":
        """Create a logger whose context is ``parent:additional_context``."""
        return TestLogger(f"{self.context}:{additional_context}", self.logger)

    def timing(self, label: str, start_time: float) -> int:
        """Log the time elapsed since ``start_time`` (a ``time.perf_counter()`` value).

        Returns:
            Elapsed milliseconds
        """
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        self.info(f"Performance: {label} took {duration_ms}ms")
        return duration_ms

import logging

from switchboard.core.config.schema import ConfigSchema
from switchboard.core.config.validation import ConfigError, load_env_var

VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

NOISY_HTTP_LOGGERS = (
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def resolve_log_level(raw_level: str | None = None) -> str:
    """Normalize a level string, falling back to INFO.

    Only the first word is used so values like ``"DEBUG  # verbose"`` from
    .env files still work.
    """
    if raw_level is None:
        try:
            raw_level = load_env_var(ConfigSchema.LOG_LEVEL)
        except ConfigError:
            raw_level = "INFO"
    parts = (raw_level or "").split()
    level = parts[0].upper() if parts else "INFO"
    return level if level in VALID_LEVELS else "INFO"


def set_noisy_http_logger_levels(current_log_level: str) -> None:
    """Ensure HTTP client noise only surfaces at DEBUG level."""

    noisy_level = logging.DEBUG if current_log_level == "DEBUG" else logging.WARNING
    for logger_name in NOISY_HTTP_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


class HttpRequestLogDowngradeFilter(logging.Filter):
    """Downgrade noisy third-party HTTP logs to DEBUG."""

    def __init__(self, *prefixes: str) -> None:
        super().__init__()
        self.prefixes = prefixes

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno == logging.INFO:
            for prefix in self.prefixes:
                if record.name.startswith(prefix):
                    record.levelno = logging.DEBUG
                    record.levelname = logging.getLevelName(logging.DEBUG)
                    break
        return True


def configure_root_logging(log_level: str | None = None) -> str:
    """Install the switchboard handler on the root logger.

    Safe to call more than once; existing root handlers are replaced.

    Returns:
        The effective level name.
    """
    level = resolve_log_level(log_level)

    handler = logging.StreamHandler()
    handler.addFilter(HttpRequestLogDowngradeFilter(*NOISY_HTTP_LOGGERS))
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level))

    set_noisy_http_logger_levels(level)
    logging.getLogger(__name__).debug("Logging configured at %s", level)
    return level

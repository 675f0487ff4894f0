"""Logging configuration with JSON output to stdout and file."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from interview_admin.constants import MAX_DEPARTMENT_NAME_LOG_LENGTH

# Global configuration cache
_logging_config: Optional[Dict] = None

# Error message for missing ENVIRONMENT variable
ENVIRONMENT_REQUIRED_ERROR = (
    "ENVIRONMENT variable is required but not set. "
    "Must be set to 'staging', 'production', or 'development'. "
    "This prevents running admin scripts against the wrong project by accident."
)


def _load_logging_config() -> Dict:
    """
    Load logging configuration from config/logging.yaml.

    Returns:
        Dict with logging configuration, or default config if file not found.
    """
    global _logging_config

    if _logging_config is not None:
        return _logging_config

    config_path = Path(__file__).parent.parent.parent / "config" / "logging.yaml"

    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                _logging_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            print(
                f"Failed to load logging config from {config_path}: {e}",
                file=sys.stderr,
            )
            _logging_config = {}
    else:
        _logging_config = {}

    _logging_config.setdefault("console", {})
    _logging_config.setdefault("structured", {})

    _logging_config["console"].setdefault(
        "max_department_name_length", MAX_DEPARTMENT_NAME_LOG_LENGTH
    )
    _logging_config["structured"].setdefault("include_display_fields", True)

    return _logging_config


def format_department_name(name: str, max_length: Optional[int] = None) -> Tuple[str, str]:
    """
    Format a department name for logging with both full and display versions.

    Args:
        name: The full department name.
        max_length: Maximum length for display version. If None, uses config value.

    Returns:
        Tuple of (full_name, display_name)
    """
    if not name:
        return "", ""

    if max_length is None:
        config = _load_logging_config()
        max_length = config["console"]["max_department_name_length"]

    # Names are matched exactly, so the full value is never stripped
    if max_length <= 0 or len(name) <= max_length:
        return name, name

    if max_length <= 3:
        display_name = name[:max_length]
    else:
        display_name = name[: max_length - 3] + "..."

    return name, display_name


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Emits one JSON object per line with severity, timestamp, environment and
    either the structured fields of a StructuredLogger call or a plain message.
    """

    def __init__(self, environment: str = "development"):
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        severity_map = {
            logging.DEBUG: "DEBUG",
            logging.INFO: "INFO",
            logging.WARNING: "WARNING",
            logging.ERROR: "ERROR",
            logging.CRITICAL: "ERROR",
        }
        severity = severity_map.get(record.levelno, "INFO")

        log_entry: Dict[str, Any] = {
            "severity": severity,
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "environment": self.environment,
            "service": "interview-admin",
            "logger": record.name,
        }

        if hasattr(record, "structured_fields"):
            log_entry.update(record.structured_fields)
        else:
            log_entry.update(
                {
                    "category": "system",
                    "action": "log",
                    "message": record.getMessage(),
                }
            )

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            log_entry["error"] = {
                "type": exc_type.__name__ if exc_type else "Exception",
                "message": str(exc_value),
                "stack": self.formatException(record.exc_info) if exc_tb else None,
            }

        return json.dumps(log_entry, default=str)


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure logging with JSON output to stdout and file.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). If None,
            uses LOG_LEVEL, then INFO.
        log_file: Path to log file. If None, uses logs/interview-admin.log.

    Environment Variables:
        LOG_LEVEL: Log level when none is passed.
        LOG_FILE: Log file path when none is passed.
        ENVIRONMENT: Environment name (staging, production, development).
    """
    log_level = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()

    if log_file is None:
        log_file = os.getenv("LOG_FILE") or str(
            Path(__file__).parent.parent.parent / "logs" / "interview-admin.log"
        )

    environment = os.getenv("ENVIRONMENT")
    if not environment:
        environment = "development"
        print("WARNING: ENVIRONMENT not set, defaulting to 'development'", file=sys.stderr)
        os.environ["ENVIRONMENT"] = environment

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    json_formatter = JSONFormatter(environment=environment)

    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(json_formatter)
    console_handler.setLevel(getattr(logging, log_level))
    handlers.append(console_handler)

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(json_formatter)
    file_handler.setLevel(getattr(logging, log_level))
    handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, log_level),
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(__name__)
    structured = StructuredLogger(logger)
    structured.script_status(
        "logging_configured",
        details={
            "environment": environment,
            "level": log_level,
            "file": log_file,
        },
    )


class StructuredLogger:
    """
    Helper class for structured logging with JSON output.

    Every entry carries a category and action so log queries can follow a
    single merge or resolution across many lines.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize structured logger.

        Args:
            logger: Base logger instance

        Raises:
            ValueError: If ENVIRONMENT variable is not set
        """
        self.logger = logger
        self.environment = os.getenv("ENVIRONMENT")
        if not self.environment:
            raise ValueError(ENVIRONMENT_REQUIRED_ERROR)

    def _log(self, level: str, structured_fields: Dict[str, Any]) -> None:
        log_method = getattr(self.logger, level.lower())
        message = structured_fields.get("message", "")
        log_method(message, extra={"structured_fields": structured_fields})

    def department_activity(
        self,
        institution_id: str,
        department_name: str,
        action: str,
        details: Optional[Dict] = None,
    ) -> None:
        """
        Log department resolution activity.

        Args:
            institution_id: Owning institution
            department_name: Exact department name
            action: Action performed (found, indexed, created)
            details: Optional additional details
        """
        full_name, display_name = format_department_name(department_name)

        name_fields = {"department_name": full_name}
        if _load_logging_config()["structured"]["include_display_fields"]:
            name_fields["department_name_display"] = display_name

        structured_fields = {
            "category": "department",
            "action": action.lower(),
            "message": f"Department {action.lower()}: {display_name}",
            "institutionId": institution_id,
            "details": {**name_fields, **(details or {})},
        }
        self._log("info", structured_fields)

    def merge_activity(
        self, institution_id: str, action: str, details: Optional[Dict] = None
    ) -> None:
        """
        Log duplicate department merge progress.

        Args:
            institution_id: Institution being merged
            action: Merge step (started, group_found, child_moved, retired, completed, failed)
            details: Optional additional details
        """
        structured_fields = {
            "category": "merge",
            "action": action.lower(),
            "message": f"Department merge {action.lower()}",
            "institutionId": institution_id,
            "details": details or {},
        }
        level = "error" if action.lower() == "failed" else "info"
        self._log(level, structured_fields)

    def analytics_activity(self, action: str, details: Optional[Dict] = None) -> None:
        """
        Log summary aggregation activity.

        Args:
            action: Aggregation step (loaded, aggregated)
            details: Optional additional details (counts)
        """
        structured_fields = {
            "category": "analytics",
            "action": action.lower(),
            "message": f"Analytics {action.lower()}",
            "details": details or {},
        }
        self._log("info", structured_fields)

    def ai_activity(self, operation: str, status: str, details: Optional[Dict] = None) -> None:
        """
        Log AI operations.

        Args:
            operation: AI operation (assess, report)
            status: Operation status
            details: Optional additional details (model, sections found)
        """
        structured_fields = {
            "category": "ai",
            "action": operation.lower(),
            "message": f"AI {operation} {status}",
            "details": details or {},
        }
        self._log("info", structured_fields)

    def database_activity(
        self,
        operation: str,
        collection: str,
        status: str,
        details: Optional[Dict] = None,
    ) -> None:
        """
        Log database operations.

        Args:
            operation: Database operation (create, update, delete, query)
            collection: Collection path
            status: Operation status
            details: Optional additional details
        """
        structured_fields = {
            "category": "database",
            "action": operation.lower(),
            "message": f"Database {operation} on {collection}: {status}",
            "details": {"collection": collection, "status": status, **(details or {})},
        }
        self._log("info", structured_fields)

    def script_status(self, status: str, details: Optional[Dict] = None) -> None:
        """
        Log command lifecycle (started, completed, failed).

        Args:
            status: Command status
            details: Optional additional details
        """
        structured_fields = {
            "category": "script",
            "action": status.lower(),
            "message": f"Command {status}",
            "details": details or {},
        }
        self._log("error" if status.lower() == "failed" else "info", structured_fields)


def get_structured_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        StructuredLogger instance.
    """
    return StructuredLogger(logging.getLogger(name))

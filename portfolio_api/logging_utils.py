import logging
import time
from typing import Optional

from .config import settings


def setup_logger(name: str = "portfolio", level: Optional[str] = None) -> logging.Logger:
    """Setup standardized logger for API operations."""
    logger = logging.getLogger(name)

    if not logger.handlers:  # Avoid duplicate handlers
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(getattr(logging, (level or settings.log_level).upper(), logging.INFO))
    return logger


def log_execution(logger: logging.Logger,
                  session_id: str,
                  command: str,
                  kind: str,
                  success: bool,
                  duration_ms: float,
                  outcome: str,
                  args: Optional[list] = None,
                  output: Optional[str] = None,
                  error: Optional[str] = None) -> None:
    """Log one terminal invocation in a structured format."""

    log_data = {
        "session_id": session_id,
        "command": command,
        "kind": kind,
        "outcome": outcome,
        "success": success,
        "duration_ms": round(duration_ms, 1)
    }

    if args:
        log_data["args"] = args

    # Keep output summaries short, multi-line help/projects text is long
    if output:
        first_line = output.strip().split("\n")[0][:100]
        log_data["output_preview"] = first_line
        log_data["output_length"] = len(output)

    if error:
        log_data["error"] = error

    status_icon = "✅" if success else "❌"
    outcome_desc = outcome.replace("_", " ").title()

    if error:
        logger.error(f"{status_icon} {outcome_desc}: {log_data}")
    else:
        logger.info(f"{status_icon} {outcome_desc}: {log_data}")


def create_session_id() -> str:
    """Create unique session ID for tracking."""
    return f"session_{int(time.time() * 1000)}"

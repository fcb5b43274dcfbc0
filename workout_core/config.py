# workout_core/config.py
# =============================================================================
# Runtime settings read from the environment, plus logging setup.
# =============================================================================

from __future__ import annotations

import logging
import os

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
LOG_LEVEL = os.getenv("WORKOUT_LOG_LEVEL", "INFO").upper()
LOGGER_NAME = "workout-core"

log = logging.getLogger(LOGGER_NAME)


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Install the root handler and set the package level. Call once at startup."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, format="%(levelname)s %(message)s")
    log.setLevel(numeric)
    log.debug(f"Logging configured at {level}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


# -----------------------------------------------------------------------------
# REST backend
# Priority:
#   1) env WORKOUT_API_URL
#   2) http://localhost:5001/api  (local dev server)
# -----------------------------------------------------------------------------
API_URL = os.getenv("WORKOUT_API_URL", "http://localhost:5001/api").rstrip("/")
API_TIMEOUT = float(os.getenv("WORKOUT_API_TIMEOUT", "10"))

# -----------------------------------------------------------------------------
# Session timing (seconds)
# -----------------------------------------------------------------------------
SHORT_REST_SECONDS = int(os.getenv("SHORT_REST_SECONDS", "60"))  # between sets
LONG_REST_SECONDS = int(os.getenv("LONG_REST_SECONDS", "90"))  # between exercises
REST_EXTEND_SECONDS = int(os.getenv("REST_EXTEND_SECONDS", "30"))
DEFAULT_EXERCISE_REST = 30

import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _int_env(name: str, default: int) -> int:
    """Read an integer setting, falling back to the default on bad input"""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        warnings.warn(f"{name}={raw!r} is not an integer, using {default}", RuntimeWarning, stacklevel=2)
        return default


def _csv_env(name: str, default: str) -> tuple[str, ...]:
    """Read a comma separated setting as a tuple of stripped values"""
    raw = os.getenv(name, default)
    return tuple(part.strip() for part in raw.split(",") if part.strip())


# Remote clinic API (appointments are persisted under /incidents)
API_URL = os.getenv("API_URL", "http://localhost:5001/api")
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "10"))

# Debounce windows before a query fires after the last triggering change
QUERY_DEBOUNCE_MS = _int_env("QUERY_DEBOUNCE_MS", 400)
CALENDAR_DEBOUNCE_MS = _int_env("CALENDAR_DEBOUNCE_MS", 300)

# Appointment list pagination
DEFAULT_PAGE_SIZE = _int_env("DEFAULT_PAGE_SIZE", 10)
PAGE_SIZE_OPTIONS = tuple(int(size) for size in _csv_env("PAGE_SIZE_OPTIONS", "5,10,25,50"))

# Month cells show this many appointments before collapsing into "+N more"
CELL_PREVIEW_LIMIT = _int_env("CELL_PREVIEW_LIMIT", 3)

# Roles that may only book for their own resource and get the conflict check
CONSTRAINED_ROLES = _csv_env("CONSTRAINED_ROLES", "Student")
# Roles that see every resource's calendar, coloured per resource
SUPERVISOR_ROLES = _csv_env("SUPERVISOR_ROLES", "Professor,Admin")

# Hour used when a new appointment is started from an empty calendar day
DEFAULT_APPOINTMENT_HOUR = _int_env("DEFAULT_APPOINTMENT_HOUR", 9)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

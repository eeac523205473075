import os

from dotenv import load_dotenv

load_dotenv()

# Courts on the board (numbered 1..COURT_COUNT)
COURT_COUNT = int(os.getenv("COURT_COUNT", "12"))

# Emergency wet-court activation covers the rest of the day
WET_COURT_DURATION_MINUTES = int(os.getenv("WET_COURT_DURATION_MINUTES", "720"))
WET_COURT_REASON = "WET COURT"

# Hard cap on occurrences produced by a single recurrence rule.
# The env var can lower it, never raise it past RECURRENCE_OCCURRENCE_LIMIT.
RECURRENCE_OCCURRENCE_LIMIT = 365
MAX_RECURRENCE_OCCURRENCES = min(
    int(os.getenv("MAX_RECURRENCE_OCCURRENCES", str(RECURRENCE_OCCURRENCE_LIMIT))),
    RECURRENCE_OCCURRENCE_LIMIT,
)

# Calendar grid rows: CALENDAR_START_HOUR .. CALENDAR_END_HOUR (exclusive)
CALENDAR_START_HOUR = int(os.getenv("CALENDAR_START_HOUR", "6"))
CALENDAR_END_HOUR = int(os.getenv("CALENDAR_END_HOUR", "22"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    CORS_ORIGINS.extend(o.strip() for o in _extra.split(",") if o.strip())

"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
LOG_DIR = PROJECT_ROOT / "data" / "logs"

# =============================================================================
# MS GRAPH CREDENTIALS (from environment)
# =============================================================================

GRAPH_TENANT_ID = os.environ.get("MICROSOFT_GRAPH_TENANT_ID", "")
GRAPH_APP_ID = os.environ.get("MICROSOFT_GRAPH_APP_ID", "")
GRAPH_CLIENT_SECRET = os.environ.get("MICROSOFT_GRAPH_CLIENT_SECRET", "")

# =============================================================================
# MAILBOX
# =============================================================================

# User id or principal name every request acts on behalf of
MAILBOX_USER_ID = os.environ.get("MAILBOX_USER_ID", "")
MAILBOX_EMAIL = os.environ.get("MAILBOX_EMAIL", MAILBOX_USER_ID)
DISPLAY_TIMEZONE = os.environ.get("DISPLAY_TIMEZONE", "UTC")

# =============================================================================
# REMOTE CALLS
# =============================================================================

SEND_TIMEOUT_SECONDS = 30.0
AVAILABILITY_TIMEOUT_SECONDS = 30.0
EVENT_MUTATION_TIMEOUT_SECONDS = 30.0
DRAFT_TIMEOUT_SECONDS = 10.0
FETCH_TIMEOUT_SECONDS = 15.0

RATE_LIMIT_PER_MINUTE = int(os.environ.get("RATE_LIMIT_PER_MINUTE", "120"))
RATE_LIMIT_BURST = max(1, RATE_LIMIT_PER_MINUTE // 12)

EVENTS_PAGE_SIZE = 200
EVENT_WINDOW_PADDING_DAYS = 7  # Days fetched either side of the displayed month

# =============================================================================
# AVAILABILITY
# =============================================================================

AVAILABILITY_INTERVAL_MINUTES = 15
WORKDAY_START_HOUR = 9
WORKDAY_END_HOUR = 17
DEFAULT_MEETING_MINUTES = 30
AVAILABILITY_RANGE_DAYS = 7

# =============================================================================
# COMPOSE
# =============================================================================

AUTOSAVE_ENABLED = os.environ.get("AUTOSAVE_ENABLED", "true").lower() == "true"
AUTOSAVE_INTERVAL_SECONDS = float(os.environ.get("AUTOSAVE_INTERVAL_SECONDS", "30"))
BACK_AFTER_SEND_SECONDS = 1.0
CONTACT_SUGGESTION_LIMIT = 5

# =============================================================================
# DISPLAY
# =============================================================================

ERROR_DISPLAY_LIMIT = 100
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.environ.get("LOG_FILE", str(LOG_DIR / "screens.log"))

"""
Configuration module for the cache and request client.
Handles environment variables and constants.
"""

import os
import logging
from pathlib import Path

from dotenv import load_dotenv

# =============================================================================
# LOGGING
# =============================================================================

logger = logging.getLogger(__name__)

# =============================================================================
# ENVIRONMENT
# =============================================================================

ENV_FILE = Path(__file__).parent.parent / ".env"
load_dotenv(ENV_FILE)

API_BASE_URL = os.getenv("API_BASE_URL", "")
API_AUTH_TOKEN = os.getenv("API_AUTH_TOKEN")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# =============================================================================
# REQUEST SETTINGS
# =============================================================================

# Per-attempt timeout in seconds
REQUEST_TIMEOUT = 10

# Attempts per request (including the first one)
MAX_RETRIES = 3

# Backoff after failed attempt n is BACKOFF_BASE ** n seconds
BACKOFF_BASE = 2

# Max concurrent requests for fan-out helpers
MAX_PARALLEL_REQUESTS = 5

# Max URLs accepted by a single prefetch tool call
MAX_PREFETCH_URLS = 20

# =============================================================================
# CACHE SETTINGS
# =============================================================================

# Cache TTL settings (in seconds)
DEFAULT_CACHE_TTL = 300          # 5 min - default for GET responses
CONVERSATION_CACHE_TTL = 120     # 2 min - locally loaded conversation data

DEFAULT_MAX_SIZE = 100           # entries
CLEANUP_INTERVAL = 300           # 5 min between expiry sweeps

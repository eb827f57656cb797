"""
Configuration for the script snippet archive.

NOTE: This module reads from environment variables.
      The .env file must be loaded by the entry point (api/main.py or the CLI)
      using python-dotenv BEFORE importing this module.
"""

import os
from pathlib import Path


# ===================
# Paths
# ===================
# Base directory (repository root)
BASE_DIR = Path(__file__).parent.parent

# SQLite database holding the script_snips table
DB_PATH = Path(os.environ.get("SCRIPTSNIP_DB_PATH", BASE_DIR / "data" / "scripts.sqlite"))


# ===================
# Snippet Defaults
# ===================
# Title stored when a snippet is created without one
DEFAULT_TITLE = "Untitled"


# ===================
# Listing Settings
# ===================
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10

# Allow-lists for the sort clause (first entry of each is the fallback)
SORT_FIELDS = ("createdAt", "title")
SORT_ORDERS = ("desc", "asc")
DEFAULT_SORT_FIELD = SORT_FIELDS[0]
DEFAULT_SORT_ORDER = SORT_ORDERS[0]


# ===================
# Sampling Settings
# ===================
DEFAULT_RANDOM_COUNT = 3


# ===================
# API Settings
# ===================
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000",
    ).split(",")
    if origin.strip()
]

# Rate limit for POST /api/scripts (per client IP)
CREATE_RATE_LIMIT = int(os.environ.get("CREATE_RATE_LIMIT", 20))
CREATE_RATE_WINDOW_SECONDS = int(os.environ.get("CREATE_RATE_WINDOW_SECONDS", 60 * 60))
CREATE_RATE_MESSAGE = "Too many scripts created from this IP, please try again after an hour"


# ===================
# Logging
# ===================
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


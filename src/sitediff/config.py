"""
Configuration for the dev/prod page comparison engine.

Values are module-level constants. Each one can be overridden through the
environment (or a local .env file) so CI jobs can tune the comparison without
code changes.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


# Path segment that anchors resource paths for cross-host matching
STATIC_MARKER = os.getenv("SITEDIFF_STATIC_MARKER", "/static")

# Path segments that exclude a resource from folder-tree construction
# ("wps" folders are generated by HCL Digital Experience)
TREE_DENYLIST = _env_list("SITEDIFF_TREE_DENYLIST", "wps")

# Maximum concurrent resource-content loads per environment
CONTENT_FETCH_CONCURRENCY = int(os.getenv("SITEDIFF_CONTENT_CONCURRENCY", "5"))

# Text captured from DOM elements is truncated to keep fact sheets small
SCRIPT_TEXT_LIMIT = 100
STYLE_TEXT_LIMIT = 100
LINK_TEXT_LIMIT = 50

# History store
MAX_HISTORY_ITEMS = 100
HISTORY_FILE = Path(os.getenv("SITEDIFF_HISTORY_FILE", "sitediff_history.json"))

# Logging
LOG_LEVEL = os.getenv("SITEDIFF_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("SITEDIFF_LOG_FILE") or None

# Name of the threshold preset used when none is given explicitly
THRESHOLD_PRESET = os.getenv("SITEDIFF_THRESHOLDS", "default")

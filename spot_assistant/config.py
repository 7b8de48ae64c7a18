# Role: Central configuration module. Loads .env into environment variables and exposes runtime settings
# (DEBUG, collaborator endpoints, session/cache/retry constants). Importers read spot_assistant.config.<NAME>
# instead of threading settings through every constructor.

from __future__ import annotations

import os

from dotenv import load_dotenv

DEBUG: bool = False

# Language inference (Gemini)
GEMINI_API_KEY: str = ""
GEMINI_MODEL: str = "gemini-1.5-flash"

# Collaborator endpoints
SPOT_SEARCH_URL: str = "http://127.0.0.1:8080/api"
VOICE_SERVICE_URL: str = "http://127.0.0.1:8090/api/voice"
HTTP_TIMEOUT_SECONDS: float = 15.0

# Session context store
SESSION_TTL_MINUTES: int = 30
SWEEP_INTERVAL_SECONDS: float = 5 * 60
SWEEP_RETRY_SECONDS: float = 60
MAX_HISTORY_STEPS: int = 10

# Query cache
SEARCH_CACHE_TTL_SECONDS: float = 15 * 60
RECENT_CACHE_TTL_SECONDS: float = 5 * 60
DEFAULT_CACHE_RADIUS_KM: float = 5.0
DEFAULT_SEARCH_RADIUS_KM: float = 15.0
SEARCH_LIMIT: int = 50

# Retry / fallback policy
QUERY_MAX_ATTEMPTS: int = 3
QUERY_RETRY_DELAY_SECONDS: float = 1.0
FALLBACK_ENABLED: bool = True
FALLBACK_TIMEOUT_SECONDS: float = 30.0

EXTRACTION_MAX_ATTEMPTS: int = 3
EXTRACTION_RETRY_DELAY_SECONDS: float = 2.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_env() -> None:
    """
    Load .env into os.environ, then recompute the settings derived from it.
    This makes the values correct even if load_env() is called after import.
    """
    global DEBUG, GEMINI_API_KEY, GEMINI_MODEL, SPOT_SEARCH_URL, VOICE_SERVICE_URL
    global HTTP_TIMEOUT_SECONDS, FALLBACK_ENABLED

    load_dotenv()
    # Key line: accept common truthy values.
    DEBUG = os.getenv("DEBUG", "0").lower() in {"1", "true", "yes"}

    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "").strip()
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "").strip() or "gemini-1.5-flash"
    SPOT_SEARCH_URL = os.getenv("SPOT_SEARCH_URL", "").strip() or SPOT_SEARCH_URL
    VOICE_SERVICE_URL = os.getenv("VOICE_SERVICE_URL", "").strip() or VOICE_SERVICE_URL
    HTTP_TIMEOUT_SECONDS = _env_float("HTTP_TIMEOUT_SECONDS", HTTP_TIMEOUT_SECONDS)
    FALLBACK_ENABLED = os.getenv("FALLBACK_ENABLED", "1").lower() in {"1", "true", "yes"}

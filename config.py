"""
Production configuration via environment variables.
Load with python-dotenv; no hardcoded secrets.
"""
import os

from dotenv import load_dotenv

# .env is optional in production where env is set by orchestrator
load_dotenv()

# ----- Server -----
PORT = int(os.environ.get("PORT", "8001"))
HOST = os.environ.get("HOST", "0.0.0.0")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# ----- Recitation checking -----
# Minimum character-set similarity for a live word to count as recited
MATCH_THRESHOLD = float(os.environ.get("MATCH_THRESHOLD", "0.8"))
# positional = index-aligned diff (default) | aligned = difflib re-synchronizing diff
DIFF_STRATEGY = os.environ.get("DIFF_STRATEGY", "positional").strip().lower()
MAX_SUGGESTIONS = int(os.environ.get("MAX_SUGGESTIONS", "5"))

# ----- Reference text (AlQuran Cloud) -----
QURAN_API_URL = os.environ.get("QURAN_API_URL", "https://api.alquran.cloud/v1/")
QURAN_API_TIMEOUT = float(os.environ.get("QURAN_API_TIMEOUT", "10"))

# ----- Suggestions (Gemini); unset key → fixed fallback suggestions -----
GOOGLE_API_KEY = os.environ.get("GOOGLE_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-1.5-flash")

# ----- Sessions / streaming -----
WS_IDLE_TIMEOUT = float(os.environ.get("WS_IDLE_TIMEOUT", "300"))
SESSION_TTL_SECONDS = float(os.environ.get("SESSION_TTL_SECONDS", "3600"))

# ----- CORS (production: set to specific origins) -----
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")


def get_cors_origins() -> list:
    """Return list of allowed CORS origins from env."""
    if CORS_ORIGINS == "*":
        return ["*"]
    return [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]


def get_match_threshold() -> float:
    """MATCH_THRESHOLD clamped to [0, 1]."""
    return min(1.0, max(0.0, MATCH_THRESHOLD))


def get_diff_strategy() -> str:
    """DIFF_STRATEGY, falling back to positional for unknown values."""
    return DIFF_STRATEGY if DIFF_STRATEGY in ("positional", "aligned") else "positional"

# folio_bot/config.py
import os
from dotenv import load_dotenv

# Load environment variables from .env file as early as possible
load_dotenv()

__version__ = "1.5.0"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# --- Telegram ---
BOT_TOKEN = os.getenv("BOT_TOKEN")
API_ID = os.getenv("API_ID")
API_HASH = os.getenv("API_HASH")
# The single chat allowed to drive the bot. Compared as a string.
ADMIN_CHAT_ID = (os.getenv("ADMIN_CHAT_ID") or "").strip()
BOT_SESSION_NAME = os.getenv("BOT_SESSION_NAME", "folio_bot")
# When on, Telegram delivers updates to /api/webhook/<BOT_TOKEN> instead of pyrogram polling
WEBHOOK_MODE = _env_bool("WEBHOOK_MODE")
TELEGRAM_API_BASE = os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org")
# Public base URL of this server; in webhook mode the webhook is registered at startup when set
PUBLIC_URL = (os.getenv("PUBLIC_URL") or "").rstrip("/")
# Telegram refuses messages above this many characters
MAX_MESSAGE_LENGTH = 4096


# --- Database ---
MONGO_URI = os.getenv("MONGO_URI")
DB_NAME = os.getenv("DB_NAME", "FolioDB")
# Applied to server selection, connect and socket operations
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", 10000))

SITE_CONFIG_COLLECTION = "site_config"
MEDIA_COLLECTION = "media"
BLOCKED_IPS_COLLECTION = "blocked_ips"
AUDIT_LOG_COLLECTION = "audit_log"
STATE_COLLECTION_NAME = "conversation_states"


# --- Web server ---
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
PUBLIC_DIR = os.getenv("PUBLIC_DIR", os.path.join(os.getcwd(), "public"))
TRUST_PROXY = _env_bool("TRUST_PROXY", "true")
WEBHOOK_PATH_PREFIX = "/api/webhook/"
SSE_KEEPALIVE_SECONDS = float(os.getenv("SSE_KEEPALIVE_SECONDS", 25))
NOTIFY_WRITE_TIMEOUT = float(os.getenv("NOTIFY_WRITE_TIMEOUT", 5))
# Page-view notices are sent once per IP inside this window (seconds)
VISITOR_NOTICE_TTL = int(os.getenv("VISITOR_NOTICE_TTL", 3600))
PLACEHOLDER_PHOTO_URL = "https://placehold.co/300x300/1a1a20/e0e0e0?text=Profile"


# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE")


# --- Content ---
# Order matters for the help text only. Caption parsing and the public gallery
# filters depend on these exact keywords.
MEDIA_CATEGORIES = ["general", "anamorphic", "event", "stall"]
DEFAULT_CATEGORY = "general"
# fuzzywuzzy score (0-100) above which a mistyped category gets a suggestion
CATEGORY_SUGGEST_THRESHOLD = int(os.getenv("CATEGORY_SUGGEST_THRESHOLD", 70))

# Seeded into site_config only when the key is missing
DEFAULT_SITE_CONFIG = {
    "profile_name": os.getenv("DEFAULT_PROFILE_NAME", "Your Name"),
    "profile_title": os.getenv("DEFAULT_PROFILE_TITLE", "3D Artist | Exhibition Stalls | Anamorphic Videos | Motion Graphics"),
    "profile_desc": os.getenv("DEFAULT_PROFILE_DESC", "Passionate 3D artist specializing in immersive experiences."),
    "profile_photo_file_id": "",
    "contact_phone_1": os.getenv("DEFAULT_CONTACT_PHONE", ""),
    "contact_email": os.getenv("DEFAULT_CONTACT_EMAIL", ""),
    "contact_call": os.getenv("DEFAULT_CONTACT_CALL", ""),
    "site_status": "live",
}


def validate_config() -> list:
    """Returns the names of required environment variables that are not set."""
    required = {
        "BOT_TOKEN": BOT_TOKEN,
        "MONGO_URI": MONGO_URI,
        "ADMIN_CHAT_ID": ADMIN_CHAT_ID,
    }
    # pyrogram (MTProto) is only started in polling mode
    if not WEBHOOK_MODE:
        required.update({"API_ID": API_ID, "API_HASH": API_HASH})
    return [name for name, value in required.items() if not value]

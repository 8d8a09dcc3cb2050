# robust .env loading
import os
from pathlib import Path

from dotenv import load_dotenv

# 1) load from CWD (project root when you run commands there)
load_dotenv(override=False)
# 2) also try repo root even if code runs from src/
repo_root = Path(__file__).resolve().parents[2]
env_path = repo_root / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=True)

# --- Flask / server ---
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
FLASK_ENV = os.getenv("FLASK_ENV", "production")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- MongoDB ---
MONGODB_URI = os.getenv("MONGODB_URI")
MONGO_DB = os.getenv("MONGO_DB", "eventhub")

# --- Identity provider (account email / display name lookups) ---
IDENTITY_API_BASE = os.getenv("IDENTITY_API_BASE")
IDENTITY_API_TOKEN = os.getenv("IDENTITY_API_TOKEN")
IDENTITY_TIMEOUT = int(os.getenv("IDENTITY_TIMEOUT", "10"))

# --- Domain constants ---
ACCESS_STATUSES = ("pending", "approved", "rejected")
DECISION_STATUSES = ("approved", "rejected")
REGISTRATION_TYPES = ("individual", "team")
PROFILE_YEAR_RANGE = (1, 6)

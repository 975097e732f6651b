"""Server configuration values."""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
DATABASE_URL = os.environ.get("SOCIAL_CHAT_DATABASE_URL", f"sqlite:///{BASE_DIR / 'social_chat.db'}")
TOKEN_EXPIRY_MINUTES = 60 * 24
LOCKOUT_ATTEMPTS = 5
LOCKOUT_MINUTES = 10

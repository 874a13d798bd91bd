import os
from dotenv import load_dotenv

load_dotenv()

# --- JWT Configuration ---
# Tokens are issued by the auth service; this backend only verifies them.
JWT_SECRET = os.getenv("JWT_SECRET", "change-this-secret-key")
JWT_ALGORITHM = "HS256"
JWT_EXPIRY_HOURS = 720  # 30 days

# --- Database ---
# Default to local SQLite, but prefer environment variable (for Supabase/Postgres)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/notestack.db")

# Fix for common SQLAlchemy issues with postgres:// vs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# --- Content store (note bodies) ---
CONTENT_STORE_BACKEND = os.getenv("CONTENT_STORE_BACKEND", "memory").strip().lower()  # memory/supabase
CONTENT_STORE_TABLE = os.getenv("CONTENT_STORE_TABLE", "note_contents")
CONTENT_STORE_TIMEOUT = float(os.getenv("CONTENT_STORE_TIMEOUT", "10"))

# --- Supabase Configuration ---
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

# --- Organizer defaults ---
DEFAULT_NOTEBOOK_NAME = "Untitled"
DEFAULT_SETTINGS = {
    "theme_layout": "default",
    "theme_color": "light",
    "corners": "rounded",
    "button_style": "solid",
}

# CORS origins, comma-separated ("*" for any)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

"""Configuration for the Messaging API."""

import os
from dotenv import load_dotenv

# Load local env files if present (never commit these).
load_dotenv(dotenv_path=".env.local", override=False)
load_dotenv(dotenv_path=".env", override=False)

# Environment name (used for warnings/behavior toggles)
ENV = os.getenv("ENV", "development")

# Managed backend (Supabase) endpoint and access key.
# Not validated here: a missing value fails on the first request that needs the client.
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
SUPABASE_SCHEMA = os.getenv("SUPABASE_SCHEMA", "public")

# Direct database URL (async driver: postgresql+asyncpg://...).
# When set, the API talks SQL to the database instead of going through Supabase.
DATABASE_URL = os.getenv("DATABASE_URL")

# HTTP listener
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Table names in the external store
CONVERSATIONS_TABLE = "conversations"
MESSAGES_TABLE = "messages"


def _parse_csv_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    items = [v.strip() for v in value.split(",")]
    items = [v for v in items if v]
    return items or None


def cors_allow_origins() -> list[str]:
    return _parse_csv_list(os.getenv("CORS_ALLOW_ORIGINS")) or ["*"]

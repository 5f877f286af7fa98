# backend/storekeeper/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storekeeper.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///storekeeper.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Comma-separated actor ids allowed to mutate data when no authorizer is injected
    AUTHORIZED_ACTORS = os.environ.get("AUTHORIZED_ACTORS", "")

    DEFAULT_REORDER_LEVEL = int(os.environ.get("DEFAULT_REORDER_LEVEL", "5"))
    TOP_ITEMS_LIMIT = int(os.environ.get("TOP_ITEMS_LIMIT", "5"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# backend/retail_pos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the backend by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///retail_pos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Store defaults; settings/store overrides these at runtime
    TAX_RATE_PERCENT = float(os.environ.get("TAX_RATE_PERCENT", "19"))
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))
    CURRENCY = os.environ.get("CURRENCY", "DA")
    STORE_NAME = os.environ.get("STORE_NAME", "My Store")

    # Bounded retry for version-conditioned stock writes
    STOCK_UPDATE_ATTEMPTS = int(os.environ.get("STOCK_UPDATE_ATTEMPTS", "3"))

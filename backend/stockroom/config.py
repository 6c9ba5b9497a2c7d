# backend/stockroom/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockroom.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockroom.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Products registered without an explicit threshold get this one
    DEFAULT_MINIMUM_STOCK = int(os.environ.get("DEFAULT_MINIMUM_STOCK", "5"))

    MOVEMENTS_DEFAULT_PER_PAGE = 20
    MOVEMENTS_MAX_PER_PAGE = 100

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

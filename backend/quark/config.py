# backend/quark/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/quark.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///quark.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Document numbering: QK-2026-0007
    ORDER_NUMBER_PREFIX = os.environ.get("ORDER_NUMBER_PREFIX", "QK")

    # Thai VAT applied to invoice net amounts
    VAT_RATE = os.environ.get("VAT_RATE", "0.07")

    SESSION_HOURS = int(os.environ.get("SESSION_HOURS", "24"))

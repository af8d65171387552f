# dailymart/config.py
from __future__ import annotations
import os


class Config:
    # SQLite DB stored in backend/instance/dailymart.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///dailymart.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "daily" -> BILL-YYYYMMDD-0001, "global" -> BILL-0001
    BILL_NUMBER_SCHEME = os.environ.get("BILL_NUMBER_SCHEME", "daily")

    LOW_STOCK_DEFAULT = int(os.environ.get("LOW_STOCK_DEFAULT", "4"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Retry policy for SQLite busy/locked errors inside write transactions
    STORE_RETRY_ATTEMPTS = 3
    STORE_RETRY_BACKOFF = 0.1

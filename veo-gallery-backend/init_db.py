#!/usr/bin/env python3
"""
Database initialization script for the SQL job store.
Creates tables if they don't exist.
"""

import sys

import config
from database import make_session_factory
from models import JobRecord  # noqa: F401  (registers the table)


def init_database():
    """Initialize the database by creating all tables."""
    if not config.JOB_STORE_URL:
        print("JOB_STORE_URL is not set; the in-memory job store needs no tables.")
        return
    try:
        print("Creating database tables...")
        make_session_factory(config.JOB_STORE_URL)
        print("✅ Database tables created successfully!")
    except Exception as e:
        print(f"❌ Error creating database tables: {e}")
        sys.exit(1)


if __name__ == "__main__":
    init_database()

"""
Application-wide settings and environment configuration
"""

from __future__ import annotations

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
PACKAGE_ROOT = Path(__file__).parent.parent

# Environment
ENV = os.getenv("LEGACY_DIARY_ENV", "development")
DEBUG = ENV == "development"

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
LOG_LEVEL = os.getenv("LEGACY_DIARY_LOG_LEVEL", "INFO")

# Public URL of the web front end (used in CORS and legacy access links)
FRONTEND_ORIGIN = os.getenv("LEGACY_DIARY_FRONTEND_ORIGIN", "https://digitallegacydiary.com")


def is_production() -> bool:
    """Check if running in production"""
    return ENV == "production"


def is_development() -> bool:
    """Check if running in development"""
    return ENV == "development"

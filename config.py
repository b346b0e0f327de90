"""
Run configuration module.

This module defines configuration classes for different environments
(development, testing, production). The same classes are consumed by
the data server, the user-store factory, and the Locust stage scripts.
Configuration values are loaded from environment variables with
sensible defaults.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Base configuration with default settings."""

    # JSON file holding the data server's user list
    DATA_FILE: str = os.environ.get("DATA_FILE", str(BASE_DIR / "data" / "users.json"))
    DATA_SERVER_PORT: int = int(os.environ.get("DATA_SERVER_PORT", "3001"))

    # Which user-store backend the stage scripts use: "memory" or "remote"
    USER_STORE_BACKEND: str = os.environ.get("USER_STORE_BACKEND", "memory")

    # Remote backend. Kept short so a dead data server degrades quickly
    # to the local fallback cache instead of stalling virtual users.
    DATA_SERVICE_URL: str = os.environ.get("DATA_SERVICE_URL", "http://localhost:3001")
    DATA_SERVICE_TIMEOUT: float = float(os.environ.get("DATA_SERVICE_TIMEOUT", "5"))

    # Wallet API under test
    BASE_URL: str = os.environ.get("BASE_URL", "https://dev.bhutanndi.com")
    API_PREFIX: str = os.environ.get("API_PREFIX", "/cloud-wallet/v1")
    BEARER_TOKEN: str = os.environ.get("BEARER_TOKEN", "")
    WALLET_API_TIMEOUT: float = float(os.environ.get("WALLET_API_TIMEOUT", "30"))
    USER_PASSWORD: str = os.environ.get(
        "USER_PASSWORD",
        "U2FsdGVkX1+enAWzb6tUKE5BOlcO+F6rvzKPwV5HYaM="
    )

    # smoke | load | stress
    RUN_MODE: str = os.environ.get("RUN_MODE", "load")
    LOAD_PROFILE: str | None = os.environ.get("LOAD_PROFILE") or None
    CLEAR_STORE: bool = os.environ.get("CLEAR_STORE", "0") == "1"


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """Testing environment configuration."""

    DEBUG: bool = True
    TESTING: bool = True

    # Never touch the real data file from the test suite
    DATA_FILE: str = os.environ.get(
        "TEST_DATA_FILE",
        str(Path(tempfile.gettempdir()) / "wallet-loadtest-users.json")
    )

    # Non-routable host plus aggressive timeout keeps fallback tests fast
    DATA_SERVICE_URL: str = os.environ.get("TEST_DATA_SERVICE_URL", "http://data-server.test")
    DATA_SERVICE_TIMEOUT: float = float(os.environ.get("TEST_DATA_SERVICE_TIMEOUT", "1"))

    BASE_URL: str = os.environ.get("TEST_BASE_URL", "http://wallet-api.test")


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG: bool = False
    TESTING: bool = False


# Configuration mapping for easy access
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])

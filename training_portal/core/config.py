"""
Training Portal Configuration
Database, token and operator-account settings read from the environment
"""

import os
from functools import lru_cache
from typing import List


class Config:
    """Validated configuration - fails fast on missing vars"""

    def __init__(self):
        # Database
        self.MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
        self.MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "training_portal")

        # Tokens
        self.JWT_SECRET_KEY = self._require_env("JWT_SECRET_KEY")
        self.JWT_ALGORITHM = "HS256"
        self.JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))

        # Single operator account (password stored as a PBKDF2 hash, never plaintext)
        self.ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "").strip().lower()
        self.ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH", "")

        self.CORS_ORIGINS = self._parse_list(os.getenv("CORS_ORIGINS", "*"))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Certificate rules
        self.MIN_ATTENDANCE_PERCENTAGE = int(os.getenv("MIN_ATTENDANCE_PERCENTAGE", "50"))
        self.ELIGIBILITY_REQUIRE_APPROVED = self._parse_bool(
            os.getenv("ELIGIBILITY_REQUIRE_APPROVED", "false")
        )

    @staticmethod
    def _require_env(key: str) -> str:
        """Get required environment variable or crash"""
        value = os.getenv(key)
        if not value:
            raise RuntimeError(f"FATAL: Missing required environment variable: {key}")
        return value

    @staticmethod
    def _parse_list(value: str) -> List[str]:
        """Parse comma-separated values into a list"""
        return [item.strip() for item in value.split(",") if item.strip()]

    @staticmethod
    def _parse_bool(value: str) -> bool:
        return value.strip().lower() in {"1", "true", "yes", "on"}

    @property
    def admin_configured(self) -> bool:
        return bool(self.ADMIN_EMAIL and self.ADMIN_PASSWORD_HASH)


@lru_cache()
def get_config() -> Config:
    """Global config instance, built on first use"""
    return Config()

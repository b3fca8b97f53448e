import os
from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised at startup when a required setting is missing."""
    pass


class Config:
    """
    Settings read straight from environment variables.
    """
    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL")
    DB_POOL_MIN_SIZE: int = int(os.environ.get("DB_POOL_MIN_SIZE", 1))
    DB_POOL_MAX_SIZE: int = int(os.environ.get("DB_POOL_MAX_SIZE", 10))

    # Tokens and passwords
    JWT_SECRET: str = os.environ.get("JWT_SECRET")
    JWT_ALGORITHM: str = os.environ.get("JWT_ALGORITHM", "HS256")
    TOKEN_EXPIRE_DAYS: int = int(os.environ.get("TOKEN_EXPIRE_DAYS", 7))
    BCRYPT_ROUNDS: int = int(os.environ.get("BCRYPT_ROUNDS", 10))
    ADMIN_SEED_SECRET: str = os.environ.get("ADMIN_SEED_SECRET")

    # Server
    PORT: int = int(os.environ.get("PORT", 8083))
    RATE_LIMITER_STORAGE_URL: str = os.environ.get("RATE_LIMITER_STORAGE_URL", "memory://")
    LOGIN_RATE_LIMIT: str = os.environ.get("LOGIN_RATE_LIMIT", "30/minute")

    # Logging
    LOG_DIR: str = os.environ.get("LOG_DIR", "logs")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    REQUIRED = ("DATABASE_URL", "JWT_SECRET")

    def validate(self):
        """Fails fast when a required secret or connection string is missing."""
        missing = [name for name in self.REQUIRED if not getattr(self, name)]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")


# Single importable instance
settings = Config()

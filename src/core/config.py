import os
from decouple import config
from dotenv import load_dotenv
from typing import List

# Load environment variables from .env file
load_dotenv()

# Environment
ENVIRONMENT = config("ENVIRONMENT", default="development")

# Database
DATABASE_URL = config("DATABASE_URL", default="sqlite+aiosqlite:///./newsdesk.db")
DATABASE_ECHO = config("DATABASE_ECHO", default=False, cast=bool)

# Application settings
APP_NAME = config("APP_NAME", default="Newsdesk")
APP_VERSION = config("APP_VERSION", default="1.2.0")
API_PREFIX = config("API_PREFIX", default="/api/v1")
DEBUG = config("DEBUG", default=False, cast=bool)

# CORS Settings
CORS_ORIGINS = config("CORS_ORIGINS", default="http://localhost:3000").split(",")
CORS_METHODS = config("CORS_METHODS", default="GET,POST,PUT,DELETE,OPTIONS").split(",")
CORS_HEADERS = config("CORS_HEADERS", default="Content-Type,Authorization,X-Requested-With,Accept").split(",")

# Logging Settings
LOG_LEVEL = config("LOG_LEVEL", default="INFO")
LOG_DIR = config("LOG_DIR", default="logs")
ACTIVITY_LOG_MAX_SIZE_MB = config("ACTIVITY_LOG_MAX_SIZE_MB", default=10, cast=int)
ACTIVITY_LOG_ROTATION = config("ACTIVITY_LOG_ROTATION", default="midnight")
ERROR_LOG_MAX_SIZE_MB = config("ERROR_LOG_MAX_SIZE_MB", default=10, cast=int)
ERROR_LOG_ROTATION = config("ERROR_LOG_ROTATION", default="midnight")

# Analytics Settings
GEOIP_DB_PATH = config("GEOIP_DB_PATH", default=os.path.join("data", "GeoLite2-City.mmdb"))
TRUST_PROXY_HEADERS = config("TRUST_PROXY_HEADERS", default=True, cast=bool)
TOP_ARTICLES_DEFAULT_LIMIT = config("TOP_ARTICLES_DEFAULT_LIMIT", default=10, cast=int)

# Settings class for FastAPI
class Settings:
    environment: str = ENVIRONMENT
    app_name: str = APP_NAME
    app_version: str = APP_VERSION
    api_prefix: str = API_PREFIX
    debug: bool = DEBUG
    database_url: str = DATABASE_URL
    database_echo: bool = DATABASE_ECHO
    cors_origins: List[str] = CORS_ORIGINS
    cors_methods: List[str] = CORS_METHODS
    cors_headers: List[str] = CORS_HEADERS
    log_level: str = LOG_LEVEL
    log_dir: str = LOG_DIR
    activity_log_max_size_mb: int = ACTIVITY_LOG_MAX_SIZE_MB
    activity_log_rotation: str = ACTIVITY_LOG_ROTATION
    error_log_max_size_mb: int = ERROR_LOG_MAX_SIZE_MB
    error_log_rotation: str = ERROR_LOG_ROTATION
    geoip_db_path: str = GEOIP_DB_PATH
    trust_proxy_headers: bool = TRUST_PROXY_HEADERS
    top_articles_default_limit: int = TOP_ARTICLES_DEFAULT_LIMIT

# Create settings instance
settings = Settings()

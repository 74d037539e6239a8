import os

from dotenv import load_dotenv

# Load .env (VS Code terminals sometimes don't inject env vars)
load_dotenv()


class Config:
    VERSION = "1.2.0"
    API_TITLE = os.getenv("API_TITLE", "Discounts Management API")

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./discounts.db")
    DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 5))
    DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 10))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # comma separated; "*" keeps the API open for the admin front end
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    # Listing / eligibility defaults
    DEFAULT_CUSTOMER_TIER = os.getenv("DEFAULT_CUSTOMER_TIER", "bronze")
    DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 20))
    MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", 500))

# app/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    FIREBASE_PROJECT_ID: str = os.getenv("FIREBASE_PROJECT_ID", "sterilog-clinic")
    FIREBASE_SERVICE_ACCOUNT_PATH: str = os.getenv(
        "FIREBASE_SERVICE_ACCOUNT_PATH",
        "firebase-service-account.json",
    )

    # Calendar days for cycle counters are evaluated in this zone on every device
    CLINIC_TIMEZONE: str = os.getenv("CLINIC_TIMEZONE", "Asia/Hong_Kong")

    # Server-time oracle
    SERVER_TIME_TIMEOUT_SECONDS: float = float(os.getenv("SERVER_TIME_TIMEOUT_SECONDS", "5"))
    SERVER_TIME_CACHE_TTL_SECONDS: float = float(os.getenv("SERVER_TIME_CACHE_TTL_SECONDS", "3600"))

    # Module catalog keys: base, base-2, ... base-N
    MODULE_KEY_MAX_ATTEMPTS: int = int(os.getenv("MODULE_KEY_MAX_ATTEMPTS", "50"))

    RECORD_LIST_LIMIT: int = int(os.getenv("RECORD_LIST_LIMIT", "50"))

    CORS_ALLOW_ORIGINS: list = [
        o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
    ]


settings = Settings()


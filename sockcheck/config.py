import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    TARGET_HOST: str = os.getenv("SOCKCHECK_TARGET_HOST", "example.com")
    LOG_LEVEL: str = os.getenv("SOCKCHECK_LOG_LEVEL", "INFO").upper()


settings = Settings()

import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me")

    # signed tokens handed to API clients
    JWT_SECRET = os.environ.get("JWT_SECRET", SECRET_KEY)
    JWT_EXPIRES_IN = int(os.environ.get("JWT_EXPIRES_IN", 3600))

    GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET")

    DATABASE_URL = os.environ.get("DATABASE_URL")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

config = Config()

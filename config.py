import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./followup.db")

# --- AUTH ---
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))  # 24 hours

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

# Parents created by an import log in once with this, then must change it
INITIAL_PARENT_PASSWORD = os.getenv("INITIAL_PARENT_PASSWORD", "123456")
MIN_PASSWORD_LENGTH = 6

# --- SHEETS ---
DEFAULT_SHEETS = [
    s.strip()
    for s in os.getenv("DEFAULT_SHEETS", "cam 1,cam 2,miami west,station 1,station 2,station 3").split(",")
    if s.strip()
]

# --- CORS ---
CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

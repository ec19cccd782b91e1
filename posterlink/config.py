import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "5000"))
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Storage Configuration
DATA_DIR = os.getenv("DATA_DIR", "./data")
USERS_DB_PATH = os.path.join(DATA_DIR, "users.db")

# Token Configuration
JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_EXPIRES_SECONDS = int(os.getenv("JWT_EXPIRES_SECONDS", "86400"))

# Image host relay (imgbb)
IMGBB_API_KEY = os.getenv("IMGBB_API_KEY", "")
IMGBB_UPLOAD_URL = os.getenv("IMGBB_UPLOAD_URL", "https://api.imgbb.com/1/upload")

# Pipeline Configuration
# Applies to every outbound fetch (thumbnails, watch page, image host).
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))
PALETTE_SIZE = int(os.getenv("PALETTE_SIZE", "5"))
TITLE_FALLBACK = os.getenv("TITLE_FALLBACK", "Title unavailable")

# Client Configuration
API_URL = os.getenv("POSTERLINK_API_URL", "http://localhost:5000")
API_TOKEN = os.getenv("POSTERLINK_TOKEN", "")

# Create directories if they don't exist
Path(DATA_DIR).mkdir(parents=True, exist_ok=True)

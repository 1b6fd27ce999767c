import os
import logging
from dotenv import load_dotenv
from botocore.client import Config as BotoConfig
import boto3

# Load .env from project root
try:
    load_dotenv(dotenv_path=os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".env")))
except Exception:
    try:
        load_dotenv()
    except Exception:
        pass

# Auth
JWT_SECRET = (os.getenv("JWT_SECRET", "") or os.getenv("SECRET_KEY", "") or "change-me").strip()
JWT_ISSUER = os.getenv("JWT_ISSUER", "studio-bookings").strip()
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "168"))

# Object storage (Cloudflare R2, S3 compatible)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID", "")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID", "")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY", "")
R2_BUCKET = os.getenv("R2_BUCKET", "")

# Local content store used when R2 is not configured
STORAGE_DIR = os.path.abspath(
    os.getenv("STORAGE_DIR", "") or os.path.join(os.path.dirname(__file__), "..", "storage")
)

# Booking list paging
DEFAULT_BOOKINGS_PAGE_SIZE = int(os.getenv("DEFAULT_BOOKINGS_PAGE_SIZE", "20"))
MAX_BOOKINGS_PAGE_SIZE = int(os.getenv("MAX_BOOKINGS_PAGE_SIZE", "1000"))

# Signature uploads arrive as base64 JSON bodies
MAX_SIGNATURE_BYTES = int(os.getenv("MAX_SIGNATURE_BYTES", str(5 * 1024 * 1024)))

_default_origins = ",".join([
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
])
_origins_env = os.getenv("ALLOWED_ORIGINS") or os.getenv("CORS_ORIGINS") or os.getenv("FRONTEND_ORIGIN") or _default_origins
ALLOWED_ORIGINS = [o.strip() for o in _origins_env.split(",") if o.strip()]

# Logging
LOG_LEVEL = (os.getenv("LOG_LEVEL", "INFO") or "INFO").upper()
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format="%(asctime)s | %(levelname)s | %(message)s")
logger = logging.getLogger("studio_bookings")

# S3/R2 client for storage operations
s3 = None

if R2_ACCOUNT_ID and R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY:
    s3 = boto3.resource(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=BotoConfig(signature_version="s3v4"),
        region_name="auto",
    )
    logger.info("R2 storage client initialized")

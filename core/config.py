import os
import pathlib

import pytz
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = pathlib.Path(__file__).parent.parent
# Timezone configuration
TIMEZONE = pytz.timezone(os.getenv("TIMEZONE", "UTC"))

# Database configuration
DATABASE_URL = os.getenv(
    "DATABASE_URL", f"sqlite+aiosqlite:///{BASE_DIR / 'db' / 'wiki.db'}"
)
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 30))
DB_TIMEOUT = float(os.getenv("DB_TIMEOUT", 10))

# Web service configuration
WEB_HOST = os.getenv("WEB_HOST", "0.0.0.0")
WEB_PORT = int(os.getenv("WEB_PORT", 8090))
TEMPLATE_DIR = pathlib.Path(os.getenv("TEMPLATE_DIR", BASE_DIR / "templates"))

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

import os

from dotenv import load_dotenv

# Load environment variables from .env file, if it exists
load_dotenv()

# Punch workflow
PUNCH_COOLDOWN_MINUTES = float(os.getenv("PUNCH_COOLDOWN_MINUTES", "5"))

# Local time used to stamp "HH:MM" punches and pick the work date
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "America/Sao_Paulo")

# Allowed locations are configuration data; cache them between punches
LOCATIONS_CACHE_SECONDS = float(os.getenv("LOCATIONS_CACHE_SECONDS", "1800"))

# Shift windows open this many minutes before and after each scheduled time
SHIFT_TOLERANCE_MINUTES = int(os.getenv("SHIFT_TOLERANCE_MINUTES", "15"))

# GPS acquisition
GPS_BACKOFF_SECONDS = float(os.getenv("GPS_BACKOFF_SECONDS", "2"))
GPS_MAX_RETRIES = int(os.getenv("GPS_MAX_RETRIES", "2"))

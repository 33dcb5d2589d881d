from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel
import models.location  # Ensure these models are known by SQLModel for table creation
import models.time_record
import models.work_shift
from db.session import engine
from contextlib import asynccontextmanager
from api.time_routes import router as time_router
from api.location_routes import router as location_router
from core.cache import TTLCache
from core.config import LOCATIONS_CACHE_SECONDS
from services.punch_service import PunchContext
import logging
import os
from dotenv import load_dotenv

# Configure logging
logging.basicConfig(level=os.getenv("APP_LOG_LEVEL", "info").upper())
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# This file is the control center of the whole application

# Load environment variables from .env file, if it exists
load_dotenv()

# Default values can be provided if the env var is not set
DEV_DOMAIN = os.getenv("DEV_DOMAIN", "http://localhost:5173")
PRODUCTION_DOMAIN = os.getenv("PRODUCTION_DOMAIN")

# Construct the list of allowed origins
allowed_origins_list = [
    DEV_DOMAIN,
    PRODUCTION_DOMAIN,
    "http://localhost:3000",  # Additional fallback for React dev
    "http://127.0.0.1:5173",  # Additional fallback for Vite dev
]

# Remove any None values and duplicates
allowed_origins_list = list(set([origin for origin in allowed_origins_list if origin]))

logger.info(f"🌐 CORS: Allowing origins: {allowed_origins_list}")

# When We Start, Create the DB Tables if they don't exist
@asynccontextmanager
async def lifespan(app: FastAPI):

    SQLModel.metadata.create_all(engine)

    # (would do shutdown cleanup here if needed)
    yield


# Starts Fast API Up; Init
app = FastAPI(lifespan=lifespan)

# Per-app state: cooldown timestamps per employee and the allowed-locations cache
app.state.punch_context = PunchContext()
app.state.location_cache = TTLCache(LOCATIONS_CACHE_SECONDS)

# Allow requests from your React dev server & production
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins_list, # Use the constructed list
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Connects Routes From Time_Routes (punch / today) to main app
app.include_router(time_router, prefix="/time", tags=["Time"])
app.include_router(location_router, prefix="/locations", tags=["Locations", "Geofence"])

import os

from dotenv import load_dotenv
from sqlmodel import Session, create_engine

# Load environment variables from .env file
load_dotenv()

# Connects app to the database

required_vars_for_tcp = ["DB_HOST", "DB_NAME", "DB_USER", "DB_PASSWORD"]
required_vars_for_socket = ["DB_NAME", "DB_USER", "DB_PASSWORD", "INSTANCE_CONNECTION_NAME"]


def resolve_database_url() -> str:
    """Pick the connection URL from environment variables.

    DATABASE_URL wins; otherwise a Cloud SQL socket or TCP PostgreSQL URL is built
    from the DB_* variables, and with nothing configured a local sqlite file is used.
    """
    database_url = os.getenv("DATABASE_URL")

    if not database_url:
        db_host = os.getenv("DB_HOST")
        db_port = os.getenv("DB_PORT", "5432")  # Default PostgreSQL port
        db_name = os.getenv("DB_NAME")
        db_user = os.getenv("DB_USER")
        db_password = os.getenv("DB_PASSWORD")
        instance_connection_name = os.getenv("INSTANCE_CONNECTION_NAME")  # For Cloud SQL Proxy

        if instance_connection_name:
            missing_vars = [var for var in required_vars_for_socket if not os.getenv(var)]
            if missing_vars:
                raise ValueError(f"Missing required environment variables for Cloud SQL (socket): {', '.join(missing_vars)}")
            # Construct PostgreSQL connection URL for Cloud SQL (Unix socket)
            database_url = f"postgresql+psycopg2://{db_user}:{db_password}@/{db_name}?host=/cloudsql/{instance_connection_name}"
        elif db_host:
            missing_vars = [var for var in required_vars_for_tcp if not os.getenv(var)]
            if missing_vars:
                raise ValueError(f"Missing required environment variables for TCP: {', '.join(missing_vars)}")
            # Construct PostgreSQL connection URL for TCP (e.g., local development)
            database_url = f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        else:
            # Local file for development when no database is configured
            database_url = "sqlite:///./timeclock.db"

    return database_url


DATABASE_URL = resolve_database_url()

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# The Wire / Link That Lets Us Pass Data from App -> db
# Note: echo=True will log all SQL statements, set to False in production
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)

# Getter for this Wire, modified for FastAPI dependency injection
def get_session():
    with Session(engine) as session:
        try:
            yield session
        finally:
            session.close()

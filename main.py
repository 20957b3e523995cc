from dotenv import load_dotenv

# Load environment variables from .env file at the very beginning
# This MUST be the first thing to run.
load_dotenv()

import logging

from ai_service_client import get_openai_client
from config import Settings
from database import create_client
from server import create_app

settings = Settings.from_env()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

if not settings.secret_key:
    raise ValueError("SECRET_KEY must be set in environment variables")

app = create_app(
    settings=settings,
    db=create_client(),
    ai_client=get_openai_client(settings),
)

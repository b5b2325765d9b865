import os
from pathlib import Path

from dotenv import load_dotenv

from .constants import DATA_DIR, DB_FILE_NAME, LOG_DIR, AI_MODEL_NAME

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
DATA_PATH = BASE_DIR / DATA_DIR
DB_PATH = Path(os.getenv("TRAVEL_OFFICE_DB") or (DATA_PATH / DB_FILE_NAME))
LOG_PATH = BASE_DIR / LOG_DIR

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", AI_MODEL_NAME)

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent

DATA_DIR = os.getenv("COURTSIDE_DATA_DIR", str(BASE_DIR.parent / "data"))
DUPLICATE_WINDOW_MINUTES = int(os.getenv("COURTSIDE_DUPLICATE_WINDOW_MINUTES", "15"))
MAX_COURTS = int(os.getenv("COURTSIDE_MAX_COURTS", "8"))
LOG_LEVEL = os.getenv("COURTSIDE_LOG_LEVEL", "INFO").upper()

# pickleball rally scoring
MIN_WINNING_SCORE = 11
MIN_WINNING_MARGIN = 2


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

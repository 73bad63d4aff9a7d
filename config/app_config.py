"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).parents[1]
load_dotenv(ROOT / ".env", override=False)

class settings:                            # pylint: disable=too-few-public-methods
    CANE_HOST              = os.getenv("CANE_HOST", "192.168.1.100")
    CANE_COMMAND_PORT      = int(os.getenv("CANE_COMMAND_PORT", 80))
    CANE_STREAM_PORT       = int(os.getenv("CANE_STREAM_PORT", 81))
    RECONNECT_BASE_DELAY   = float(os.getenv("RECONNECT_BASE_DELAY", 3.0))
    MAX_RECONNECT_ATTEMPTS = int(os.getenv("MAX_RECONNECT_ATTEMPTS", 5))
    COMMAND_TIMEOUT        = float(os.getenv("COMMAND_TIMEOUT", 5.0))
    ULTRASONIC_THRESHOLD   = float(os.getenv("ULTRASONIC_THRESHOLD", 100))
    TOF_THRESHOLD          = float(os.getenv("TOF_THRESHOLD", 50))
    LOG_LEVEL              = os.getenv("LOG_LEVEL", "INFO").upper()

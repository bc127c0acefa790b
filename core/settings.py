from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()

ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_SOURCE = ROOT_DIR / "Coffee_Sales_Cleaned.xlsx"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _parse_str_list(val: Optional[str]) -> List[str]:
    if not val:
        return []
    return [s.strip() for s in val.split(",") if s.strip()]


def _parse_float(val: Optional[str], default: float) -> float:
    if not val:
        return default
    try:
        return float(val.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    source: str = str(DEFAULT_SOURCE)
    fetch_timeout: float = 30.0
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"


def get_settings() -> Settings:
    source = os.getenv("COFFEE_SALES_SOURCE", "").strip()
    # strip quotes copied from shell snippets
    if len(source) >= 2 and source[0] == source[-1] and source[0] in {"'", '"'}:
        source = source[1:-1]

    return Settings(
        source=source or str(DEFAULT_SOURCE),
        fetch_timeout=_parse_float(os.getenv("COFFEE_FETCH_TIMEOUT"), 30.0),
        cors_origins=_parse_str_list(os.getenv("COFFEE_CORS_ORIGINS")) or list(DEFAULT_CORS_ORIGINS),
        log_level=(os.getenv("COFFEE_LOG_LEVEL", "INFO").strip() or "INFO").upper(),
    )


def configure_logging(level: Optional[str] = None) -> None:
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

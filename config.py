import logging
import os
import re
from pathlib import Path
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel


class ConfigError(RuntimeError):
    """Required configuration is missing or unusable."""


class Settings(BaseModel):
    notion_token: str
    notion_page_id: str
    log_level: str = "INFO"


def extract_page_id(page_url: str) -> str:
    """Return the 32-hex page id at the end of a Notion page URL (or a bare id)."""
    path = re.split(r"[?#]", page_url.strip(), maxsplit=1)[0].rstrip("/")
    match = re.search(r"([a-f0-9]{32})$", path.replace("-", ""), re.IGNORECASE)
    if not match:
        raise ConfigError(f"Failed to extract page ID from {page_url!r}")
    return match.group(1).lower()


def content_location(environ: Optional[Mapping[str, str]] = None) -> Tuple[Path, Optional[Path]]:
    env = os.environ if environ is None else environ
    fallback = env.get("FALLBACK_FILE")
    return Path(env.get("CONTENT_DIR") or "public/content"), Path(fallback) if fallback else None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    token = env.get("NOTION_INTEGRATION_SECRET")
    if not token:
        raise ConfigError("NOTION_INTEGRATION_SECRET is not defined. Please add it to your environment variables.")
    page_url = env.get("NOTION_PAGE_URL")
    if not page_url:
        raise ConfigError("NOTION_PAGE_URL is not defined. Please add it to your environment variables.")

    return Settings(
        notion_token=token,
        notion_page_id=extract_page_id(page_url),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

"""
Parsing of raw Notion page records into portfolio documents.

Notion returns every page as a loosely-shaped dict of typed properties. All
property access goes through the readers below, and every fallback value is
listed once in DEFAULTS, so a missing or malformed field never raises.
"""

from pathlib import PurePosixPath
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from schemas import ItemType, MediaAttachment, PortfolioGeneral, PortfolioItem

# field -> value used when the record does not provide one
DEFAULTS: Dict[str, Any] = {
    "heading": "Untitled",
    "project_heading": "Untitled Project",
    "year": "2024",
    "position": "Position",
    "company": "Company",
    "description": "",
    "platform": "",
    "handle": "",
    "display_name": "Portfolio",
    "byline": "",
    "profile_photo": "/content/media/profilePhoto.jpg",
    "attachment_width": 1920,
    "attachment_height": 1080,
}

VIDEO_EXTENSIONS = {".mp4", ".mov", ".webm", ".m4v"}

Properties = Dict[str, Any]


# Property readers
def _prop(props: Properties, name: str) -> Dict[str, Any]:
    value = props.get(name) if isinstance(props, dict) else None
    return value if isinstance(value, dict) else {}


def _plain(segments: Any) -> str:
    if not isinstance(segments, list):
        return ""
    return "".join(s.get("plain_text") or "" for s in segments if isinstance(s, dict)).strip()


def title_text(props: Properties, name: str) -> str:
    return _plain(_prop(props, name).get("title"))


def rich_text(props: Properties, name: str) -> str:
    return _plain(_prop(props, name).get("rich_text"))


def url_value(props: Properties, name: str) -> Optional[str]:
    return _prop(props, name).get("url") or None


def number_value(props: Properties, name: str) -> Optional[float]:
    value = _prop(props, name).get("number")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def file_urls(props: Properties, name: str) -> List[str]:
    urls = []
    for f in _prop(props, name).get("files") or []:
        if not isinstance(f, dict):
            continue
        url = (f.get("file") or {}).get("url") or (f.get("external") or {}).get("url")
        if url:
            urls.append(url)
    return urls


def year_text(props: Properties, name: str = "Year") -> str:
    """Year may be a number column or a free text column ("2021 - 2023")."""
    number = number_value(props, name)
    if number is not None:
        return str(int(number)) if float(number).is_integer() else str(number)
    return rich_text(props, name) or DEFAULTS["year"]


def order_value(page: Dict[str, Any]) -> Optional[float]:
    return number_value(page.get("properties") or {}, "Order")


def media_type(url: str) -> str:
    try:
        path = urlparse(url).path
    except ValueError:
        return "image"
    suffix = PurePosixPath(path).suffix.lower()
    return "video" if suffix in VIDEO_EXTENSIONS else "image"


def attachments(props: Properties, name: str = "Attachments") -> List[MediaAttachment]:
    return [
        MediaAttachment(
            url=url,
            type=media_type(url),
            width=DEFAULTS["attachment_width"],
            height=DEFAULTS["attachment_height"],
        )
        for url in file_urls(props, name)
    ]


# Per-collection parsers
def parse_project(page: Dict[str, Any], item_type: ItemType = "project") -> PortfolioItem:
    props = page.get("properties") or {}
    heading = title_text(props, "Title") or DEFAULTS["project_heading"]
    return PortfolioItem(
        id=page["id"],
        heading=heading,
        title=heading,
        year=year_text(props),
        url=url_value(props, "URL"),
        description=rich_text(props, "Description") or DEFAULTS["description"],
        company=rich_text(props, "Company") or None,
        attachments=attachments(props),
        type=item_type,
    )


def parse_work_experience(page: Dict[str, Any], item_type: ItemType = "workExperience") -> PortfolioItem:
    props = page.get("properties") or {}
    title = title_text(props, "Title") or DEFAULTS["position"]
    company = rich_text(props, "Company") or DEFAULTS["company"]
    return PortfolioItem(
        id=page["id"],
        heading=f"{title} at {company}",
        title=title,
        company=company,
        year=year_text(props),
        location=rich_text(props, "Location") or None,
        description=rich_text(props, "Description") or DEFAULTS["description"],
        type=item_type,
    )


def parse_section(page: Dict[str, Any], item_type: ItemType) -> PortfolioItem:
    props = page.get("properties") or {}
    return PortfolioItem(
        id=page["id"],
        heading=title_text(props, "Title") or DEFAULTS["heading"],
        year=year_text(props),
        url=url_value(props, "URL"),
        description=rich_text(props, "Description") or DEFAULTS["description"],
        location=rich_text(props, "Location") or None,
        attachments=attachments(props),
        type=item_type,
    )


def parse_contact(page: Dict[str, Any], item_type: ItemType = "contact") -> PortfolioItem:
    props = page.get("properties") or {}
    platform = title_text(props, "Platform") or DEFAULTS["platform"]
    return PortfolioItem(
        id=page["id"],
        heading=platform or DEFAULTS["heading"],
        platform=platform,
        handle=rich_text(props, "Handle") or DEFAULTS["handle"],
        url=url_value(props, "URL"),
        type=item_type,
    )


PARSERS: Dict[str, Callable[[Dict[str, Any], ItemType], PortfolioItem]] = {
    "project": parse_project,
    "workExperience": parse_work_experience,
    "writing": parse_section,
    "speaking": parse_section,
    "education": parse_section,
    "contact": parse_contact,
}


def parse_item(page: Dict[str, Any], item_type: ItemType) -> PortfolioItem:
    return PARSERS[item_type](page, item_type)


def parse_general(page: Dict[str, Any]) -> PortfolioGeneral:
    props = page.get("properties") or {}
    photos = file_urls(props, "ProfilePhoto")
    return PortfolioGeneral(
        profile_photo=photos[0] if photos else DEFAULTS["profile_photo"],
        display_name=title_text(props, "DisplayName") or DEFAULTS["display_name"],
        byline=rich_text(props, "Byline") or DEFAULTS["byline"],
        website=url_value(props, "Website") or "",
        about=rich_text(props, "About") or "",
    )

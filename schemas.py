"""
Document Schemas for the Portfolio content service

Each Pydantic model describes a JSON document the service writes to disk or
returns over HTTP. Attributes are snake_case in Python and camelCase on the
wire (e.g., profile_photo -> "profilePhoto"), which is what the browser client
reads from profileData.json.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Collection type tags, in display order, paired with their CMS database title
COLLECTIONS = [
    ("Work Experience", "workExperience"),
    ("Projects", "project"),
    ("Writing", "writing"),
    ("Speaking", "speaking"),
    ("Education", "education"),
    ("Contact", "contact"),
]

SECTION_ORDER = [name for name, _ in COLLECTIONS]

ItemType = Literal["project", "workExperience", "writing", "speaking", "education", "contact"]


# Media
class MediaAttachment(CamelModel):
    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Remote URL, or /content/media/<file> once synchronized")
    type: Literal["image", "video"] = "image"
    width: Optional[int] = None
    height: Optional[int] = None
    original_url: Optional[str] = Field(None, description="Remote URL kept when url was rewritten")


# One record of any collection
class PortfolioItem(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    heading: str = "Untitled"
    year: str = "2024"
    url: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    attachments: List[MediaAttachment] = Field(default_factory=list)
    type: ItemType
    # Collection specific extras
    title: Optional[str] = None
    company: Optional[str] = None
    platform: Optional[str] = None
    handle: Optional[str] = None


class PortfolioGeneral(CamelModel):
    profile_photo: str = "/content/media/profilePhoto.jpg"
    display_name: str = "Portfolio"
    byline: str = ""
    website: Optional[str] = None
    about: Optional[str] = None
    section_order: List[str] = Field(default_factory=lambda: list(SECTION_ORDER))


class PortfolioCollection(CamelModel):
    name: str
    items: List[PortfolioItem] = Field(default_factory=list)


# The served document
class Snapshot(CamelModel):
    general: Optional[PortfolioGeneral] = None
    projects: List[PortfolioItem] = Field(default_factory=list)
    work_experience: List[PortfolioItem] = Field(default_factory=list)
    writing: List[PortfolioItem] = Field(default_factory=list)
    speaking: List[PortfolioItem] = Field(default_factory=list)
    education: List[PortfolioItem] = Field(default_factory=list)
    contact: List[PortfolioItem] = Field(default_factory=list)
    all_collections: List[PortfolioCollection] = Field(default_factory=list)


class SyncStats(CamelModel):
    total_images: int = 0
    downloaded: int = 0
    failed: int = 0
    cleaned: int = 0


class UpdateMetadata(CamelModel):
    timestamp: str
    stats: SyncStats = Field(default_factory=SyncStats)


# API payloads
class StaticGenerationResult(CamelModel):
    success: bool
    timestamp: str
    stats: Optional[SyncStats] = None
    error: Optional[str] = None


class StaticStatus(CamelModel):
    has_static_files: bool
    last_update: Optional[UpdateMetadata] = None


class SyncResult(CamelModel):
    success: bool
    message: Optional[str] = None
    stats: Optional[SyncStats] = None
    error: Optional[str] = None

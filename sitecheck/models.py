from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Awaitable, Callable, Dict, List, Optional
from enum import Enum


class ThankYouKind(str, Enum):
    PAGE = "page"
    MODAL = "modal"


class CheckStatus(str, Enum):
    TESTED = "tested"
    NOT_FOUND = "not_found"


# ─── Scan Result Models ────────────────────────────────────────────────────────

class DataElementSummary(BaseModel):
    """Count of data-bearing elements in one content page's main region."""
    model_config = ConfigDict(frozen=True)

    total: int = 0
    breakdown: Dict[str, int] = {}

    @model_validator(mode="after")
    def total_matches_breakdown(self):
        if self.total != sum(self.breakdown.values()):
            raise ValueError(
                f"total {self.total} does not equal breakdown sum {sum(self.breakdown.values())}"
            )
        return self

    @classmethod
    def from_breakdown(cls, breakdown: Dict[str, int]) -> "DataElementSummary":
        return cls(total=sum(breakdown.values()), breakdown=dict(breakdown))


class ContactAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    found: bool = False
    map: bool = False
    address: bool = False
    phone: bool = False
    email: bool = False
    form: bool = False

    @classmethod
    def not_found(cls) -> "ContactAnalysis":
        return cls()


class SiteResult(BaseModel):
    """
    Everything the scanner learned about one site folder.
    A result with exists=False carries nothing but the name and path.
    """
    model_config = ConfigDict(frozen=True)

    site: str
    site_path: str
    exists: bool = False
    main_page_path: Optional[str] = None
    favicon_path: Optional[str] = None
    favicon_relative_path: Optional[str] = None
    has_main_page: bool = False
    has_contact_page: bool = False
    has_favicon: bool = False
    has_contact_map: bool = False
    has_contact_address: bool = False
    has_contact_phone: bool = False
    has_contact_email: bool = False
    has_contact_form: bool = False
    has_thank_you_page: bool = False
    thank_you_kind: Optional[ThankYouKind] = None
    documents: int = 0
    images: int = 0
    main_page_images: int = 0
    footer_documents: bool = False
    pages_data_elements: Dict[str, DataElementSummary] = {}

    @property
    def images_min5(self) -> bool:
        return self.images >= 5

    @property
    def main_page_images_min5(self) -> bool:
        return self.main_page_images >= 5


class ScanStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    existing: int = 0
    with_main: int = 0
    with_contact: int = 0
    with_favicon: int = 0
    with_thank_you: int = 0
    with_images5: int = 0
    with_main_page_images5: int = 0
    with_map: int = 0
    with_form: int = 0


# ─── Front-end API Models ──────────────────────────────────────────────────────

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeRequest(_CamelModel):
    folder_path: Optional[str] = Field(None, description="Root folder holding one sub-folder per site")
    agent_url: Optional[str] = Field(None, description="Public URL of a remote agent serving the folder")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "folderPath": "/srv/exports",
            }
        },
    )


class AnalyzeResponse(_CamelModel):
    success: bool
    output: str = ""
    error: str = ""
    report: str = ""
    stats: ScanStats = ScanStats()


class SitesResponse(_CamelModel):
    sites: List[str]
    count: int
    path: str


class RegisterAgentRequest(_CamelModel):
    agent_url: str


# ─── Remote Agent Models ───────────────────────────────────────────────────────

class FolderRequest(_CamelModel):
    folder_path: Optional[str] = None


class CopyRequest(_CamelModel):
    source_path: Optional[str] = None


class ListEntry(_CamelModel):
    name: str
    path: str
    is_directory: bool
    size: int


class ListResponse(_CamelModel):
    items: List[ListEntry]
    path: str


class AccessResponse(_CamelModel):
    accessible: bool
    is_directory: Optional[bool] = None
    path: Optional[str] = None
    error: Optional[str] = None


class CopyResponse(_CamelModel):
    type: str
    path: Optional[str] = None
    content: Optional[str] = None


# ─── Browser Checklist Models ──────────────────────────────────────────────────

class ChecklistItem(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    name: str
    category: str
    check: Callable[[Any, str], Awaitable[bool]]


class ChecklistOutcome(BaseModel):
    name: str
    category: str
    passed: bool
    error: Optional[str] = None


class SiteChecklistResult(BaseModel):
    site: str
    status: CheckStatus
    checks: Dict[str, ChecklistOutcome] = {}

    @property
    def progress(self) -> int:
        if not self.checks:
            return 0
        passed = sum(1 for c in self.checks.values() if c.passed)
        return int(passed * 100 / len(self.checks) + 0.5)

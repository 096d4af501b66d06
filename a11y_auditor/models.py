from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from a11y_auditor.config import MAX_PAGES_TO_CRAWL

Level = Literal["error", "warning", "hint"]
Impact = Literal["critical", "serious", "moderate", "minor", "passed"]


class WireModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# --- Crawl models ---

class CrawlTarget(WireModel):
    model_config = ConfigDict(frozen=True)

    url: str
    homepage_only: bool = False
    max_pages: int = MAX_PAGES_TO_CRAWL


class CrawlRequest(WireModel):
    url: str = Field("", validation_alias=AliasChoices("url", "mainUrl"))
    max_pages: int = MAX_PAGES_TO_CRAWL
    homepage_only: bool = False


class MultiCrawlRequest(WireModel):
    domains: list[str] = Field(default_factory=list)
    max_pages: int = MAX_PAGES_TO_CRAWL
    homepage_only: bool = False


class CrawledPage(WireModel):
    url: str
    title: str
    selected: bool = True


# --- Audit models ---

class AccessibilityIssue(WireModel):
    # Issues posted back for reporting may carry upstream status fields
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = ""
    title: str = ""
    description: str = ""
    help: str = ""
    category: str = "other"
    level: Level = "error"
    impact: Impact = "serious"
    selector: str = ""
    html: str = ""
    failure_summary: str = ""
    tags: list[str] = Field(default_factory=list)
    help_url: str = ""
    guidelines: Any = ""
    why_important: str = ""
    how_to_fix: str = ""
    disability_types_affected: list[str] = Field(default_factory=list)
    wcag_references: list[Any] = Field(default_factory=list)


class PageSummary(WireModel):
    total_issues: int = 0
    errors: int = 0
    warnings: int = 0
    hints: int = 0
    pages_with_issues: int = 0
    critical_issues: int = 0
    serious_issues: int = 0
    moderate_issues: int = 0


class AuditIssues(WireModel):
    errors: list[AccessibilityIssue] = Field(default_factory=list)
    warnings: list[AccessibilityIssue] = Field(default_factory=list)
    hints: list[AccessibilityIssue] = Field(default_factory=list)

    def all(self) -> list[AccessibilityIssue]:
        return [*self.errors, *self.warnings, *self.hints]


class AuditResult(WireModel):
    model_config = ConfigDict(frozen=True)

    url: str
    timestamp: str
    summary: PageSummary = Field(default_factory=PageSummary)
    issues: AuditIssues = Field(default_factory=AuditIssues)
    raw_data: Optional[dict[str, Any]] = None
    error: Optional[str] = None


class AuditRequest(WireModel):
    urls: list[str] = Field(default_factory=list)
    pages: list[str] = Field(default_factory=list)
    custom_urls: list[str] = Field(default_factory=list)

    def all_urls(self) -> list[str]:
        if self.urls:
            return list(self.urls)
        return [*self.pages, *self.custom_urls]


class AuthStatus(WireModel):
    valid: bool
    message: str
    details: Optional[dict[str, Any]] = None


# --- Summary / report models ---

class CategorySummary(WireModel):
    name: str
    count: int
    percentage: int


class TopIssue(WireModel):
    id: str
    title: str
    level: str
    category: str
    count: int
    pages: list[str]
    page_count: int
    impact: str


class AuditSummary(WireModel):
    total_pages: int = 0
    pages_with_issues: int = 0
    total_issues: int = 0
    errors: int = 0
    warnings: int = 0
    hints: int = 0
    categories: dict[str, CategorySummary] = Field(default_factory=dict)
    top_issues: list[TopIssue] = Field(default_factory=list)
    timestamp: str = ""


class ReportRequest(WireModel):
    results: list[AuditResult]
    format: Literal["json", "csv"] = "json"


class PdfReportRequest(WireModel):
    results: list[AuditResult]


class AuditRecord(WireModel):
    id: str
    timestamp: str
    summary: AuditSummary
    results: list[AuditResult]
    pages: list[str]


class CompareRequest(WireModel):
    audit_id1: str
    audit_id2: str

"""Turns raw accessibility-API payloads into per-node issues in severity lanes.

Only actionable findings are kept: ``passes`` are discarded outright, and
``violations``/``incomplete`` entries are dropped when their status marks them
as passed, incomplete, inapplicable or not applicable, or when they have no
affected DOM nodes. Violations land in the ``errors`` lane and incomplete
findings in the ``warnings`` lane. The ``hints`` lane is never populated.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from a11y_auditor.config import RULE_HELP_BASE_URL
from a11y_auditor.models import AccessibilityIssue

logger = logging.getLogger(__name__)

EXCLUDED_STATUSES = frozenset({"passed", "incomplete", "inapplicable", "na"})
IMPACTS = frozenset({"critical", "serious", "moderate", "minor", "passed"})
DEFAULT_IMPACT = {"error": "serious", "warning": "moderate", "hint": "minor"}

_TAG = re.compile(r"<[^>]*>")


def clean_html(text: str) -> str:
    if not text:
        return ""
    return _TAG.sub("", text).strip()


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


class RawNode(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    target: list[Any] = Field(default_factory=list)
    html: str = ""
    failure_summary: str = Field("", alias="failureSummary")

    @field_validator("target", mode="before")
    @classmethod
    def _target_list(cls, v: Any) -> list:
        if isinstance(v, str):
            return [v]
        return _as_list(v)

    @field_validator("html", "failure_summary", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _text(v)

    @property
    def selector(self) -> str:
        parts = []
        for t in self.target:
            # Shadow DOM targets arrive as nested selector lists
            parts.append(" ".join(map(str, t)) if isinstance(t, list) else str(t))
        return ", ".join(parts)


class RawFinding(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = ""
    act_rule_id: str = Field("", alias="actRuleId")
    title: str = ""
    description: str = ""
    help: str = ""
    help_url: str = Field("", alias="helpUrl")
    category: str = ""
    impact: str = ""
    status: str = ""
    type: str = ""
    result: str = ""
    tags: list[str] = Field(default_factory=list)
    nodes: list[RawNode] = Field(default_factory=list)
    guidelines: Any = ""
    why_important: str = Field("", alias="whyImportant")
    how_to_fix: str = Field("", alias="howToFix")
    disability_types_affected: list[str] = Field(default_factory=list, alias="disabilityTypesAffected")
    wcag_references: list[Any] = Field(default_factory=list, alias="wcagReferences")

    @field_validator(
        "id", "act_rule_id", "title", "description", "help", "help_url", "category",
        "impact", "status", "type", "result", "why_important", "how_to_fix",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v: Any) -> list[str]:
        return [str(t) for t in _as_list(v)]

    @field_validator("nodes", "wcag_references", mode="before")
    @classmethod
    def _lists(cls, v: Any) -> list:
        return _as_list(v)

    @field_validator("disability_types_affected", mode="before")
    @classmethod
    def _disability_types(cls, v: Any) -> list[str]:
        if isinstance(v, list):
            return [str(t) for t in v]
        return [str(v)] if v else []

    @property
    def rule_id(self) -> str:
        return self.id or self.act_rule_id

    @property
    def normalized_status(self) -> str:
        return (self.status or self.type or self.result).lower()

    @property
    def normalized_type(self) -> str:
        return (self.type or self.status or self.result).lower()


def _findings(value: Any, lane: str) -> list[RawFinding]:
    findings = []
    for item in _as_list(value):
        if not isinstance(item, dict):
            logger.warning("Ignoring non-object %s entry: %r", lane, item)
            continue
        try:
            findings.append(RawFinding.model_validate(item))
        except ValidationError as e:
            logger.warning("Ignoring malformed %s entry %s: %s", lane, item.get("id", "?"), e)
    return findings


class RawPayload(BaseModel):
    violations: list[RawFinding] = Field(default_factory=list)
    incomplete: list[RawFinding] = Field(default_factory=list)
    passes: list[RawFinding] = Field(default_factory=list)
    statistics: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Any) -> "RawPayload":
        """Validate an API response, tolerating missing or wrong-typed sections."""
        if not isinstance(data, dict):
            return cls()
        results = data.get("results")
        body = results if isinstance(results, dict) else data
        statistics = body.get("statistics")
        return cls(
            violations=_findings(body.get("violations"), "violations"),
            incomplete=_findings(body.get("incomplete"), "incomplete"),
            passes=_findings(body.get("passes"), "passes"),
            statistics=statistics if isinstance(statistics, dict) else {},
        )


@dataclass
class ClassifiedIssues:
    errors: list[AccessibilityIssue] = field(default_factory=list)
    warnings: list[AccessibilityIssue] = field(default_factory=list)
    hints: list[AccessibilityIssue] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return len(self.errors) + len(self.warnings) + len(self.hints)


def is_violation(finding: RawFinding) -> bool:
    if finding.normalized_status in EXCLUDED_STATUSES:
        return False
    if finding.normalized_type in EXCLUDED_STATUSES:
        return False
    return len(finding.nodes) > 0


def _category(finding: RawFinding) -> str:
    if finding.category:
        return finding.category
    if finding.tags:
        return finding.tags[0].replace("cat.", "", 1) or "other"
    return "other"


def expand_finding(finding: RawFinding, level: str) -> list[AccessibilityIssue]:
    """One issue per affected node, or a single node-less issue."""
    rule_id = finding.rule_id
    impact = finding.impact.lower()
    if impact not in IMPACTS:
        impact = DEFAULT_IMPACT[level]

    common = dict(
        id=rule_id,
        title=clean_html(finding.title or rule_id),
        description=finding.description,
        help=finding.help,
        category=_category(finding),
        level=level,
        impact=impact,
        tags=list(finding.tags),
        help_url=finding.help_url or f"{RULE_HELP_BASE_URL}/{rule_id}",
        guidelines=finding.guidelines if finding.guidelines is not None else "",
        why_important=finding.why_important,
        how_to_fix=finding.how_to_fix,
        disability_types_affected=list(finding.disability_types_affected),
        wcag_references=list(finding.wcag_references),
    )

    if not finding.nodes:
        return [AccessibilityIssue(**common)]

    return [
        AccessibilityIssue(
            **common,
            selector=node.selector,
            html=node.html,
            failure_summary=node.failure_summary,
        )
        for node in finding.nodes
    ]


def classify(raw: Any, payload: Optional[RawPayload] = None) -> ClassifiedIssues:
    """Filter, expand and bucket a raw API payload."""
    if payload is None:
        payload = RawPayload.from_api(raw)
    classified = ClassifiedIssues()

    for finding in payload.violations:
        if is_violation(finding):
            classified.errors.extend(expand_finding(finding, "error"))

    for finding in payload.incomplete:
        if is_violation(finding):
            classified.warnings.extend(expand_finding(finding, "warning"))

    if payload.passes:
        logger.debug("Discarding %d passed rules", len(payload.passes))

    return classified

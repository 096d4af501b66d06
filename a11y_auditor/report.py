"""Cross-page summaries, JSON/CSV renderings and audit comparison."""

from __future__ import annotations

import math
from typing import Any, Iterable, Union

from a11y_auditor.auditor import utc_timestamp
from a11y_auditor.classifier import EXCLUDED_STATUSES
from a11y_auditor.config import REPORT_VERSION, TOP_ISSUES_LIMIT
from a11y_auditor.models import (
    AccessibilityIssue,
    AuditRecord,
    AuditResult,
    AuditSummary,
    CategorySummary,
    TopIssue,
)

CATEGORY_LABELS: dict[str, str] = {
    "forms": "Forms & Inputs",
    "navigation": "Navigation",
    "images": "Images & Media",
    "text": "Text & Typography",
    "structure": "Page Structure",
    "interactive": "Interactive Elements",
    "other": "Other",
}

CSV_HEADER = ["Page URL", "Critical Issues", "Serious Issues", "Moderate Issues", "Total Score"]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category) or category[:1].upper() + category[1:]


def is_violation_issue(issue: AccessibilityIssue) -> bool:
    """Re-check an issue coming back from a client before it is counted."""
    extra = issue.model_extra or {}
    status = str(extra.get("status") or extra.get("type") or extra.get("result") or "").lower()
    kind = str(extra.get("type") or extra.get("status") or extra.get("result") or "").lower()
    if status in EXCLUDED_STATUSES or kind in EXCLUDED_STATUSES:
        return False
    return bool(issue.title or issue.description or issue.help or issue.how_to_fix)


def _category_summary(counts: dict[str, int]) -> dict[str, CategorySummary]:
    total = sum(counts.values())
    ordered = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return {
        category: CategorySummary(
            name=category_label(category),
            count=count,
            percentage=_round_half_up(count / total * 100) if total else 0,
        )
        for category, count in ordered
    }


def _top_issues(occurrences: Iterable[tuple[AccessibilityIssue, str]]) -> list[TopIssue]:
    grouped: dict[tuple[str, str], dict[str, Any]] = {}
    for issue, page_url in occurrences:
        key = (issue.id, issue.level)
        entry = grouped.get(key)
        if entry is None:
            entry = grouped[key] = {
                "issue": issue,
                "count": 0,
                "pages": {},
            }
        entry["count"] += 1
        entry["pages"][page_url] = None

    ranked = sorted(grouped.values(), key=lambda e: e["count"], reverse=True)
    return [
        TopIssue(
            id=e["issue"].id,
            title=e["issue"].title,
            level=e["issue"].level,
            category=e["issue"].category,
            count=e["count"],
            pages=list(e["pages"]),
            page_count=len(e["pages"]),
            impact=e["issue"].impact,
        )
        for e in ranked[:TOP_ISSUES_LIMIT]
    ]


def summarize(results: list[AuditResult]) -> AuditSummary:
    """Reduce per-page results into one summary; failed pages only count toward totalPages."""
    pages_with_issues = total_issues = errors = warnings = hints = 0
    category_counts: dict[str, int] = {}
    occurrences: list[tuple[AccessibilityIssue, str]] = []

    for result in results:
        if result.error:
            continue

        page = result.summary
        if page.total_issues > 0:
            pages_with_issues += 1
        total_issues += page.total_issues
        errors += page.errors
        warnings += page.warnings
        hints += page.hints

        for issue in result.issues.all():
            if not is_violation_issue(issue):
                continue
            occurrences.append((issue, result.url))
            category = issue.category or "other"
            category_counts[category] = category_counts.get(category, 0) + 1

    return AuditSummary(
        total_pages=len(results),
        pages_with_issues=pages_with_issues,
        total_issues=total_issues,
        errors=errors,
        warnings=warnings,
        hints=hints,
        categories=_category_summary(category_counts),
        top_issues=_top_issues(occurrences),
        timestamp=utc_timestamp(),
    )


def page_score(result: AuditResult) -> int:
    s = result.summary
    return max(0, 100 - (s.critical_issues + s.serious_issues + s.moderate_issues))


def flatten_issues(result: AuditResult) -> list[dict[str, Any]]:
    return [{**issue.to_wire(), "pageUrl": result.url} for issue in result.issues.all()]


def render_json(results: list[AuditResult], summary: AuditSummary) -> dict[str, Any]:
    detailed = []
    for result in results:
        if result.error:
            detailed.append({"url": result.url, "error": result.error, "timestamp": result.timestamp})
            continue
        detailed.append({
            "url": result.url,
            "timestamp": result.timestamp,
            "summary": result.summary.to_wire(),
            "issues": flatten_issues(result),
        })

    return {
        "report": {
            "summary": summary.to_wire(),
            "results": detailed,
            "generatedAt": utc_timestamp(),
            "version": REPORT_VERSION,
        }
    }


def escape_csv_field(value: Any) -> str:
    if value is None or value == "":
        return ""
    text = str(value)
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def render_csv(results: list[AuditResult]) -> str:
    rows = [",".join(CSV_HEADER)]
    for result in results:
        if result.error:
            rows.append(",".join([escape_csv_field(result.url), "ERROR", "ERROR", "ERROR", "0"]))
            continue
        s = result.summary
        rows.append(",".join([
            escape_csv_field(result.url),
            str(s.critical_issues),
            str(s.serious_issues),
            str(s.moderate_issues),
            str(page_score(result)),
        ]))
    return "\n".join(rows)


def generate_detailed_report(results: list[AuditResult], fmt: str = "json") -> Union[dict[str, Any], str]:
    if fmt == "csv":
        return render_csv(results)
    return render_json(results, summarize(results))


# --- Audit comparison ---

_COUNTERS = ("totalIssues", "errors", "warnings", "hints")


def _page_counts(result: AuditResult) -> dict[str, int]:
    s = result.summary
    return {
        "errors": s.errors,
        "warnings": s.warnings,
        "hints": s.hints,
        "totalIssues": s.total_issues,
    }


def compare_audits(first: AuditRecord, second: AuditRecord) -> dict[str, Any]:
    """Deltas are ``second - first``; improvement means fewer issues in ``second``."""
    a = first.summary.to_wire()
    b = second.summary.to_wire()

    changes = {key: b[key] - a[key] for key in (*_COUNTERS, "pagesWithIssues")}
    improvement = {key: b[key] < a[key] for key in _COUNTERS}

    earlier_by_url = {r.url: r for r in first.results}
    later_by_url = {r.url: r for r in second.results}
    page_comparisons = []
    for before in earlier_by_url.values():
        later = later_by_url.get(before.url)
        if later is None:
            continue
        c1, c2 = _page_counts(before), _page_counts(later)
        page_comparisons.append({
            "url": before.url,
            "page1": c1,
            "page2": c2,
            "changes": {key: c2[key] - c1[key] for key in c1},
        })

    return {
        "audit1": {"id": first.id, "timestamp": first.timestamp, "summary": a},
        "audit2": {"id": second.id, "timestamp": second.timestamp, "summary": b},
        "changes": changes,
        "improvement": improvement,
        "pageComparisons": page_comparisons,
    }

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from a11y_auditor.audit_client import AuditClient
from a11y_auditor.classifier import ClassifiedIssues, RawPayload, classify
from a11y_auditor.config import AUDIT_DELAY
from a11y_auditor.errors import AuditClientError, InvalidArgumentError
from a11y_auditor.models import AuditIssues, AuditResult, PageSummary

logger = logging.getLogger(__name__)

_STATISTIC_KEYS = {
    "critical": "criticalIssues",
    "serious": "seriousIssues",
    "moderate": "moderateIssues",
}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _severity_count(statistics: dict[str, Any], impact: str, classified: ClassifiedIssues) -> int:
    key = _STATISTIC_KEYS[impact]
    if key in statistics:
        try:
            return int(statistics[key] or 0)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric statistics.%s=%r", key, statistics[key])
    lanes = classified.errors + classified.warnings + classified.hints
    return sum(1 for issue in lanes if issue.impact == impact)


def build_result(url: str, raw: dict[str, Any]) -> AuditResult:
    """Wrap one classified API payload into the per-page result shape."""
    payload = RawPayload.from_api(raw)
    classified = classify(raw, payload=payload)
    stats = payload.statistics
    total = classified.total_issues
    summary = PageSummary(
        total_issues=total,
        errors=len(classified.errors),
        warnings=len(classified.warnings),
        hints=len(classified.hints),
        pages_with_issues=1 if total > 0 else 0,
        critical_issues=_severity_count(stats, "critical", classified),
        serious_issues=_severity_count(stats, "serious", classified),
        moderate_issues=_severity_count(stats, "moderate", classified),
    )
    body = raw.get("results") if isinstance(raw.get("results"), dict) else raw
    return AuditResult(
        url=url,
        timestamp=utc_timestamp(),
        summary=summary,
        issues=AuditIssues(
            errors=classified.errors,
            warnings=classified.warnings,
            hints=classified.hints,
        ),
        raw_data=body,
    )


def error_result(url: str, message: str) -> AuditResult:
    return AuditResult(url=url, timestamp=utc_timestamp(), error=message)


class AuditOrchestrator:
    """Audits URLs one after another, isolating per-URL failures."""

    def __init__(
        self,
        client: Optional[AuditClient] = None,
        delay: float = AUDIT_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client or AuditClient()
        self.delay = delay
        self._sleep = sleep

    def audit_page(self, url: str) -> AuditResult:
        return build_result(url, self.client.submit(url))

    def audit_all(self, urls: list[str], cancel_event: Optional[threading.Event] = None) -> list[AuditResult]:
        """One result per input URL, same order; failures become error results."""
        if not urls:
            raise InvalidArgumentError("At least one page must be selected")

        results: list[AuditResult] = []
        total = len(urls)
        logger.info("Starting accessibility audit for %d pages", total)

        for i, url in enumerate(urls):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Audit cancelled, %d pages not audited", total - i)
                results.extend(error_result(u, "Audit cancelled") for u in urls[i:])
                break

            logger.info("Auditing %d/%d: %s", i + 1, total, url)
            try:
                results.append(self.audit_page(url))
            except AuditClientError as e:
                logger.error("Error auditing %s: %s", url, e.message)
                results.append(error_result(url, e.message))
            except Exception as e:
                logger.exception("Unexpected error auditing %s", url)
                results.append(error_result(url, str(e) or e.__class__.__name__))

            if i < total - 1 and self.delay > 0:
                self._sleep(self.delay)

        logger.info("Audit completed for %d pages", len(results))
        return results

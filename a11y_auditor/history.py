import logging
import threading
import time
import uuid
from collections import deque
from typing import Any, Optional

from a11y_auditor.auditor import utc_timestamp
from a11y_auditor.config import MAX_HISTORY_ENTRIES
from a11y_auditor.models import AuditRecord, AuditResult, AuditSummary
from a11y_auditor.report import compare_audits

logger = logging.getLogger(__name__)


class AuditHistory:
    """Process-lifetime audit history, capped at ``max_entries`` (oldest evicted first)."""

    def __init__(self, max_entries: int = MAX_HISTORY_ENTRIES):
        self._records: deque[AuditRecord] = deque(maxlen=max(0, max_entries))
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def add(self, results: list[AuditResult], summary: AuditSummary, pages: list[str]) -> AuditRecord:
        record = AuditRecord(
            id=f"audit_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}",
            timestamp=utc_timestamp(),
            summary=summary,
            results=list(results),
            pages=list(pages),
        )
        with self._lock:
            # maxlen 0 disables history: append is a no-op and nothing is evicted
            if self._records and len(self._records) == self._records.maxlen:
                logger.info("Audit history full, evicting %s", self._records[0].id)
            self._records.append(record)
        return record

    def list(self) -> list[dict[str, Any]]:
        with self._lock:
            records = list(self._records)
        return [
            {
                "id": r.id,
                "timestamp": r.timestamp,
                "summary": r.summary.to_wire(),
                "pageCount": len(r.pages),
            }
            for r in records
        ]

    def get(self, audit_id: str) -> Optional[AuditRecord]:
        with self._lock:
            for record in self._records:
                if record.id == audit_id:
                    return record
        return None

    def compare(self, first_id: str, second_id: str) -> Optional[dict[str, Any]]:
        first, second = self.get(first_id), self.get(second_id)
        if first is None or second is None:
            return None
        return compare_audits(first, second)

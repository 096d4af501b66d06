from dataclasses import dataclass, field
from typing import Optional

from a11y_auditor.audit_client import AuditClient
from a11y_auditor.auditor import AuditOrchestrator
from a11y_auditor.crawler import Crawler
from a11y_auditor.history import AuditHistory


@dataclass
class Services:
    """Long-lived collaborators shared by every request handler."""

    crawler: Crawler = field(default_factory=Crawler)
    audit_client: AuditClient = field(default_factory=AuditClient)
    history: AuditHistory = field(default_factory=AuditHistory)
    auditor: Optional[AuditOrchestrator] = None

    def __post_init__(self) -> None:
        if self.auditor is None:
            self.auditor = AuditOrchestrator(client=self.audit_client)

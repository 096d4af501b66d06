"""Tests for the HTTP API."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from a11y_auditor.auditor import AuditOrchestrator
from a11y_auditor.crawler import CrawlResult, DiscoveredPage
from a11y_auditor.errors import InvalidArgumentError
from a11y_auditor.history import AuditHistory
from a11y_auditor.models import AuthStatus
from a11y_auditor.services import Services
from main import create_app

RAW = {
    "violations": [{
        "id": "image-alt",
        "title": "Images must have alternate text",
        "impact": "critical",
        "tags": ["cat.images"],
        "nodes": [{"target": ["img"], "html": "<img>"}],
    }],
}


@pytest.fixture
def crawler():
    mock = Mock()
    mock.crawl.return_value = CrawlResult(
        start_url="https://example.com/",
        pages=[
            DiscoveredPage(url="https://example.com/", title="Home"),
            DiscoveredPage(url="https://example.com/about", title="About", depth=1),
        ],
    )
    return mock


@pytest.fixture
def audit_client():
    mock = Mock()
    mock.submit.return_value = RAW
    return mock


@pytest.fixture
def services(crawler, audit_client):
    return Services(
        crawler=crawler,
        audit_client=audit_client,
        history=AuditHistory(),
        auditor=AuditOrchestrator(client=audit_client, delay=0),
    )


@pytest.fixture
def api(services):
    return TestClient(create_app(services))


def run_audit(api, urls):
    resp = api.post("/api/audit", json={"urls": urls})
    assert resp.status_code == 200
    return resp.json()


class TestHealth:
    """Test cases for service endpoints."""

    def test_health(self, api):
        body = api.get("/api/health").json()
        assert body["status"] == "OK"
        assert body["timestamp"]

    def test_auth(self, api, audit_client):
        audit_client.test_auth.return_value = AuthStatus(valid=False, message="API key not configured")
        body = api.get("/api/test-auth").json()
        assert body["authStatus"] == {"valid": False, "message": "API key not configured"}


class TestCrawlEndpoint:
    """Test cases for /api/crawl."""

    def test_crawl(self, api, crawler):
        resp = api.post("/api/crawl", json={"mainUrl": "https://example.com", "maxPages": 5})

        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "pages": [
                {"url": "https://example.com/", "title": "Home", "selected": True},
                {"url": "https://example.com/about", "title": "About", "selected": True},
            ],
        }
        target = crawler.crawl.call_args.args[0]
        assert (target.url, target.max_pages, target.homepage_only) == ("https://example.com", 5, False)

    def test_invalid_argument_is_400(self, api, crawler):
        crawler.crawl.side_effect = InvalidArgumentError("Main URL is required")
        resp = api.post("/api/crawl", json={"url": ""})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Main URL is required"}

    def test_crawl_multi(self, api):
        resp = api.post("/api/crawl-multi", json={"domains": ["https://example.com"], "maxPages": 2})

        [entry] = resp.json()["results"]
        assert entry["domain"] == "https://example.com"
        assert len(entry["pages"]) == 2
        assert len(entry["auditResults"]) == 2
        assert entry["summary"]["totalIssues"] == 2

    def test_crawl_multi_isolates_domain_failure(self, api, crawler):
        good = crawler.crawl.return_value
        crawler.crawl.side_effect = [RuntimeError("dns failure"), good]
        resp = api.post("/api/crawl-multi", json={"domains": ["https://bad.test", "https://example.com"]})

        bad, ok = resp.json()["results"]
        assert bad["error"] == "dns failure"
        assert bad["pages"] == []
        assert "error" not in ok

    def test_crawl_multi_requires_domains(self, api):
        assert api.post("/api/crawl-multi", json={"domains": []}).status_code == 400


class TestAuditEndpoints:
    """Test cases for audit and history endpoints."""

    def test_audit(self, api):
        body = run_audit(api, ["https://example.com/", "https://example.com/about"])

        assert body["success"] is True
        assert [r["url"] for r in body["results"]] == ["https://example.com/", "https://example.com/about"]
        assert body["results"][0]["issues"]["errors"][0]["id"] == "image-alt"
        assert body["summary"]["topIssues"][0]["pageCount"] == 2
        assert body["auditId"].startswith("audit_")

    def test_audit_pages_and_custom_urls(self, api, audit_client):
        resp = api.post("/api/audit", json={"pages": ["https://example.com/"],
                                            "customUrls": ["https://example.com/extra"]})
        assert resp.status_code == 200
        assert [c.args[0] for c in audit_client.submit.call_args_list] == [
            "https://example.com/", "https://example.com/extra",
        ]

    def test_audit_without_urls_is_400(self, api):
        resp = api.post("/api/audit", json={"urls": []})
        assert resp.status_code == 400
        assert resp.json() == {"error": "At least one page must be selected"}

    def test_history_roundtrip(self, api):
        audit_id = run_audit(api, ["https://example.com/"])["auditId"]

        [entry] = api.get("/api/audit-history").json()["history"]
        assert entry["id"] == audit_id
        assert entry["pageCount"] == 1

        audit = api.get(f"/api/audit/{audit_id}").json()["audit"]
        assert audit["pages"] == ["https://example.com/"]

    def test_unknown_audit_is_404(self, api):
        resp = api.get("/api/audit/audit_missing")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Audit not found"}

    def test_compare(self, api, audit_client):
        first = run_audit(api, ["https://example.com/"])["auditId"]
        audit_client.submit.return_value = {"violations": []}
        second = run_audit(api, ["https://example.com/"])["auditId"]

        comparison = api.post("/api/audit-compare", json={"auditId1": first, "auditId2": second}).json()["comparison"]
        assert comparison["changes"]["totalIssues"] == -1
        assert comparison["improvement"]["totalIssues"] is True

    def test_compare_unknown_is_404(self, api):
        resp = api.post("/api/audit-compare", json={"auditId1": "a", "auditId2": "b"})
        assert resp.status_code == 404


class TestReportEndpoints:
    """Test cases for report exports."""

    def test_json_report(self, api):
        results = run_audit(api, ["https://example.com/"])["results"]
        report = api.post("/api/report", json={"results": results, "format": "json"}).json()["report"]

        assert report["summary"]["totalPages"] == 1
        assert report["results"][0]["issues"][0]["pageUrl"] == "https://example.com/"

    def test_csv_report(self, api):
        results = run_audit(api, ["https://example.com/"])["results"]
        results.append({"url": "https://example.com/down", "timestamp": "t", "error": "boom"})
        resp = api.post("/api/report", json={"results": results, "format": "csv"})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "attachment" in resp.headers["content-disposition"]
        lines = resp.text.split("\n")
        assert lines[1] == "https://example.com/,1,0,0,99"
        assert lines[2] == "https://example.com/down,ERROR,ERROR,ERROR,0"

    def test_pdf_report(self, api):
        results = run_audit(api, ["https://example.com/"])["results"]
        resp = api.post("/api/report/pdf", json={"results": results})

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")


def test_audit_with_history_disabled(crawler, audit_client):
    services = Services(crawler=crawler, audit_client=audit_client, history=AuditHistory(max_entries=0),
                        auditor=AuditOrchestrator(client=audit_client, delay=0))
    api = TestClient(create_app(services))

    body = run_audit(api, ["https://example.com/"])
    assert body["results"][0]["summary"]["errors"] == 1
    assert api.get(f"/api/audit/{body['auditId']}").status_code == 404


def test_report_defaults_to_json(api):
    results = run_audit(api, ["https://example.com/"])["results"]
    body = api.post("/api/report", json={"results": results}).json()
    assert body["report"]["version"] == "1.0.0"

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from a11y_auditor import __version__
from a11y_auditor.config import LOG_FILE, LOG_LEVEL
from a11y_auditor.errors import InvalidArgumentError
from a11y_auditor.logging_config import setup_logging
from a11y_auditor.models import (
    AuditRequest,
    AuditSummary,
    CompareRequest,
    CrawlRequest,
    CrawlTarget,
    MultiCrawlRequest,
    PdfReportRequest,
    ReportRequest,
)
from a11y_auditor.pdf_report import generate_pdf
from a11y_auditor.report import generate_detailed_report, summarize
from a11y_auditor.services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_services(request: Request) -> Services:
    return request.app.state.services


@router.get("/health")
def health():
    return {"status": "OK", "timestamp": _now()}


@router.get("/test-auth")
def test_auth(services: Services = Depends(get_services)):
    auth_status = services.audit_client.test_auth()
    return {"status": "OK", "authStatus": auth_status.to_wire(), "timestamp": _now()}


@router.post("/crawl")
def run_crawl(req: CrawlRequest, services: Services = Depends(get_services)):
    target = CrawlTarget(url=req.url, max_pages=req.max_pages, homepage_only=req.homepage_only)
    logger.info("Crawl request: url=%s maxPages=%d homepageOnly=%s",
                req.url, req.max_pages, req.homepage_only)
    result = services.crawler.crawl(target)
    return {"success": True, "pages": [p.to_wire() for p in result.crawled_pages]}


@router.post("/crawl-multi")
def run_multi_crawl(req: MultiCrawlRequest, services: Services = Depends(get_services)):
    if not req.domains:
        raise InvalidArgumentError("At least one domain is required")

    results = []
    for domain in req.domains:
        target = CrawlTarget(url=domain, max_pages=req.max_pages, homepage_only=req.homepage_only)
        try:
            crawl = services.crawler.crawl(target)
            pages = crawl.crawled_pages
            audit_results = services.auditor.audit_all([p.url for p in pages]) if pages else []
            summary = summarize(audit_results)
        except InvalidArgumentError:
            raise
        except Exception as e:
            logger.exception("Error processing domain %s", domain)
            results.append({
                "domain": domain,
                "error": str(e),
                "pages": [],
                "auditResults": [],
                "summary": AuditSummary(timestamp=_now()).to_wire(),
            })
            continue

        logger.info("Completed domain %s: %d pages, %d audit results",
                    domain, len(pages), len(audit_results))
        results.append({
            "domain": domain,
            "pages": [p.to_wire() for p in pages],
            "auditResults": [r.to_wire() for r in audit_results],
            "summary": summary.to_wire(),
        })

    return {"success": True, "results": results}


@router.post("/audit")
def run_audit(req: AuditRequest, services: Services = Depends(get_services)):
    urls = req.all_urls()
    results = services.auditor.audit_all(urls)
    summary = summarize(results)
    record = services.history.add(results, summary, urls)
    return {
        "success": True,
        "results": [r.to_wire() for r in results],
        "summary": summary.to_wire(),
        "auditId": record.id,
    }


@router.get("/audit-history")
def audit_history(services: Services = Depends(get_services)):
    return {"history": services.history.list()}


@router.get("/audit/{audit_id}")
def get_audit(audit_id: str, services: Services = Depends(get_services)):
    record = services.history.get(audit_id)
    if record is None:
        return JSONResponse(status_code=404, content={"error": "Audit not found"})
    return {"audit": record.to_wire()}


@router.post("/audit-compare")
def compare_audits(req: CompareRequest, services: Services = Depends(get_services)):
    comparison = services.history.compare(req.audit_id1, req.audit_id2)
    if comparison is None:
        return JSONResponse(status_code=404, content={"error": "One or both audits not found"})
    return {"comparison": comparison}


@router.post("/report")
def export_report(req: ReportRequest):
    report = generate_detailed_report(req.results, req.format)
    if req.format == "csv":
        return Response(
            content=report,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="accessibility-audit-report.csv"'},
        )
    return report


@router.post("/report/pdf")
def export_pdf(req: PdfReportRequest):
    pdf_bytes = generate_pdf(req.results, summarize(req.results))
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=accessibility-audit-report.pdf"},
    )


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Build the API; ``services`` defaults to collaborators configured from the environment."""
    application = FastAPI(title="Accessibility Auditor", version=__version__)
    application.state.services = services or Services()

    @application.exception_handler(InvalidArgumentError)
    async def invalid_argument(_request: Request, exc: InvalidArgumentError):
        logger.warning("Rejected request: %s", exc)
        return JSONResponse(status_code=400, content={"error": str(exc)})

    application.include_router(router)
    return application


setup_logging(LOG_LEVEL, LOG_FILE)
app = create_app()

"""BFS site crawler that discovers auditable pages using requests + BeautifulSoup."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional

from a11y_auditor.config import CRAWL_DELAY, MAX_PAGES_LIMIT
from a11y_auditor.errors import InvalidArgumentError
from a11y_auditor.fetcher import PageFetcher, is_404_page, is_html_page
from a11y_auditor.links import extract_links
from a11y_auditor.models import CrawledPage, CrawlTarget
from a11y_auditor.sitemap import SitemapResolver
from a11y_auditor.urls import is_excluded_file, normalize_url, url_hostname

logger = logging.getLogger(__name__)


@dataclass
class DiscoveredPage:
    url: str
    title: str
    status_code: int = 200
    depth: int = 0

    def to_crawled_page(self) -> CrawledPage:
        return CrawledPage(url=self.url, title=self.title, selected=True)


@dataclass
class CrawlResult:
    start_url: str
    pages: list[DiscoveredPage] = field(default_factory=list)
    failed_urls: list[str] = field(default_factory=list)
    skipped_urls: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def crawled_pages(self) -> list[CrawledPage]:
        return [p.to_crawled_page() for p in self.pages]


def validate_target(target: CrawlTarget) -> None:
    if not target.url or not target.url.strip():
        raise InvalidArgumentError("Main URL is required")
    if not 1 <= target.max_pages <= MAX_PAGES_LIMIT:
        raise InvalidArgumentError(f"maxPages must be a number between 1 and {MAX_PAGES_LIMIT}")


class Crawler:
    """Breadth-first crawler with sitemap seeding, soft-404 and duplicate suppression."""

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        sitemap_resolver: Optional[SitemapResolver] = None,
        delay: float = CRAWL_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.fetcher = fetcher or PageFetcher()
        self.sitemap_resolver = sitemap_resolver or SitemapResolver()
        self.delay = delay
        self._sleep = sleep

    def crawl(self, target: CrawlTarget, cancel_event: Optional[threading.Event] = None) -> CrawlResult:
        validate_target(target)

        base_url = normalize_url(target.url)
        domain = url_hostname(base_url)
        max_pages = target.max_pages
        result = CrawlResult(start_url=base_url)

        visited: set[str] = set()
        queued: set[str] = set()
        collected: set[str] = set()
        frontier: deque[tuple[str, int]] = deque()

        def enqueue(url: str, depth: int) -> None:
            normalized = normalize_url(url)
            if normalized in visited or normalized in queued or is_excluded_file(normalized):
                return
            queued.add(normalized)
            frontier.append((normalized, depth))

        logger.info("Starting crawl of %s (max pages %d, homepage only %s)",
                    base_url, max_pages, target.homepage_only)

        enqueue(base_url, 0)
        if target.homepage_only:
            logger.info("Homepage-only mode: skipping sitemap discovery and link extraction")
        else:
            sitemap_urls = self.sitemap_resolver.resolve(base_url, domain)
            if not sitemap_urls:
                logger.info("No sitemap URLs found for %s, relying on link discovery", base_url)
            for url in sitemap_urls:
                enqueue(url, 1)

        if not frontier:
            frontier.append((base_url, 0))
            queued.add(base_url)

        while frontier and len(result.pages) < max_pages:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Crawl of %s cancelled after %d pages", base_url, len(result.pages))
                result.cancelled = True
                break

            current, depth = frontier.popleft()
            queued.discard(current)
            if current in visited:
                continue
            visited.add(current)

            logger.info("Crawling %s", current)
            try:
                page = self.fetcher.fetch(current)

                if page is None:
                    result.failed_urls.append(current)
                else:
                    final = normalize_url(page.effective_url)
                    visited.add(final)
                    if is_404_page(current, page) or is_excluded_file(final) or not is_html_page(page):
                        logger.info("Skipping %s (not-found, excluded or non-HTML)", current)
                        result.skipped_urls.append(current)
                    elif final in collected:
                        logger.info("Skipping %s, already collected as %s", current, final)
                        result.skipped_urls.append(current)
                    else:
                        collected.add(final)
                        result.pages.append(DiscoveredPage(
                            url=page.url, title=page.title,
                            status_code=page.status_code, depth=depth,
                        ))
                        if not target.homepage_only and len(result.pages) < max_pages:
                            # Relative hrefs resolve against where the redirects landed
                            for link in extract_links(page.html, page.effective_url, domain):
                                enqueue(link, depth + 1)
            except Exception:
                logger.exception("Error crawling %s", current)
                result.failed_urls.append(current)

            if frontier and len(result.pages) < max_pages and self.delay > 0:
                self._sleep(self.delay)

        logger.info("Crawl completed: %d pages (limit %d), %d failed",
                    len(result.pages), max_pages, len(result.failed_urls))
        if result.failed_urls:
            logger.warning("Failed to crawl %d URLs: %s", len(result.failed_urls), result.failed_urls)
        return result

"""Sitemap discovery used to seed the crawl frontier."""

from __future__ import annotations

import logging
from typing import Optional

import requests
from bs4 import BeautifulSoup

from a11y_auditor.config import MAX_CHILD_SITEMAPS, REQUEST_TIMEOUT, USER_AGENT
from a11y_auditor.urls import is_crawlable, resolve_url, url_hostname

logger = logging.getLogger(__name__)

SITEMAP_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/xml,text/xml,*/*",
}

FALLBACK_PATHS = [
    "sitemap_index.xml",
    "sitemap/",
    "sitemaps/",
    "sitemap/sitemap.xml",
]


class SitemapResolver:
    """Collects crawlable page URLs from a site's sitemap.xml or its usual fallbacks."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
        max_child_sitemaps: int = MAX_CHILD_SITEMAPS,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_child_sitemaps = max_child_sitemaps

    def _fetch_xml(self, url: str) -> Optional[BeautifulSoup]:
        try:
            resp = self.session.get(
                url, headers=SITEMAP_HEADERS, timeout=self.timeout, allow_redirects=True,
            )
        except requests.RequestException as e:
            logger.info("Sitemap %s not reachable: %s", url, e)
            return None
        if resp.status_code >= 400:
            logger.info("Sitemap %s returned HTTP %s", url, resp.status_code)
            return None
        return BeautifulSoup(resp.content, "lxml-xml")

    def _page_locs(self, soup: BeautifulSoup, base_url: str, domain: str) -> list[str]:
        urls = []
        for entry in soup.find_all("url"):
            loc = entry.find("loc")
            if loc is None:
                continue
            text = loc.get_text(strip=True)
            absolute = resolve_url(text, base_url) if text else None
            if absolute and is_crawlable(absolute, domain):
                urls.append(absolute)
        return urls

    def _child_sitemaps(self, soup: BeautifulSoup, base_url: str, domain: str) -> list[str]:
        children = []
        for entry in soup.find_all("sitemap"):
            loc = entry.find("loc")
            text = loc.get_text(strip=True) if loc else ""
            absolute = resolve_url(text, base_url) if text else None
            if absolute and url_hostname(absolute) == domain.lower():
                children.append(absolute)
        return children[:self.max_child_sitemaps]

    def _urls_from(self, sitemap_url: str, base_url: str, domain: str) -> list[str]:
        soup = self._fetch_xml(sitemap_url)
        if soup is None:
            return []

        urls = self._page_locs(soup, base_url, domain)
        for child in self._child_sitemaps(soup, base_url, domain):
            logger.info("Following child sitemap %s", child)
            child_soup = self._fetch_xml(child)
            if child_soup is not None:
                urls.extend(self._page_locs(child_soup, base_url, domain))

        # Keep first occurrence of each URL
        return list(dict.fromkeys(urls))

    def resolve(self, base_url: str, domain: str) -> list[str]:
        """Crawlable URLs from the first sitemap source that yields any; [] otherwise."""
        root = base_url.rstrip("/")
        candidates = [f"{root}/sitemap.xml"] + [f"{root}/{path}" for path in FALLBACK_PATHS]

        for sitemap_url in candidates:
            logger.info("Trying sitemap %s", sitemap_url)
            urls = self._urls_from(sitemap_url, base_url, domain)
            if urls:
                logger.info("Found %d URLs in %s", len(urls), sitemap_url)
                return urls

        logger.info("No usable sitemap found for %s", base_url)
        return []

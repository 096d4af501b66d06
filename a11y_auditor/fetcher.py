import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from a11y_auditor.config import MAX_REDIRECTS, REQUEST_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)

PAGE_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

# Some sites redirect /en/page to /en/en/page
_DUPLICATED_LOCALE = re.compile(r"/([a-z]{2})/\1/", re.I)

_ERROR_PATH_MARKERS = ("/not-found", "/error", "/page-not-found", "/file-not-found")
_ERROR_TITLE_MARKERS = ("404", "not found", "page not found")
_ERROR_BODY_MARKERS = ("404 error", "not found", "page not found", "file not found")


@dataclass
class FetchedPage:
    url: str
    title: str
    html: str
    status_code: int
    content_type: str = ""
    # Where redirects ended up; empty when it is ``url`` itself
    final_url: str = ""

    @property
    def effective_url(self) -> str:
        return self.final_url or self.url


def extract_title(soup: BeautifulSoup) -> str:
    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""
    if not title:
        h1 = soup.find("h1")
        title = h1.get_text(strip=True) if h1 else ""
    return title or "Untitled"


def correct_locale_path(url: str) -> Optional[str]:
    """Collapse a duplicated locale segment, or None when there is none."""
    match = _DUPLICATED_LOCALE.search(url)
    if not match:
        return None
    return url[:match.start()] + f"/{match.group(1)}/" + url[match.end():]


def is_404_page(url: str, page: FetchedPage) -> bool:
    """Heuristic soft-404 detection for pages served with a 2xx/3xx status."""
    if page.status_code == 404:
        return True

    path = urlparse(url).path.lower()
    if any(marker in path for marker in _ERROR_PATH_MARKERS):
        return True

    title = page.title.lower()
    if any(marker in title for marker in _ERROR_TITLE_MARKERS):
        return True

    html = page.html.lower()
    return any(marker in html for marker in _ERROR_BODY_MARKERS)


def is_html_page(page: FetchedPage) -> bool:
    content_type = page.content_type.lower()
    return not content_type or "html" in content_type


class PageFetcher:
    """Fetches a single page and extracts its title."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT,
        max_redirects: int = MAX_REDIRECTS,
    ):
        self.session = session or requests.Session()
        self.session.headers.update(PAGE_HEADERS)
        self.session.max_redirects = max_redirects
        self.timeout = timeout

    def _get(self, url: str) -> requests.Response:
        resp = self.session.get(url, timeout=self.timeout, allow_redirects=True)
        if resp.status_code >= 400:
            raise requests.HTTPError(f"HTTP {resp.status_code} for {url}", response=resp)
        return resp

    def _to_page(self, url: str, resp: requests.Response) -> FetchedPage:
        soup = BeautifulSoup(resp.content, "lxml")
        return FetchedPage(
            url=url,
            title=extract_title(soup),
            html=resp.text,
            status_code=resp.status_code,
            content_type=resp.headers.get("Content-Type", ""),
            final_url=resp.url or url,
        )

    def fetch(self, url: str) -> Optional[FetchedPage]:
        """GET ``url``; None on any network, timeout or HTTP >= 400 failure."""
        try:
            resp = self._get(url)
        except requests.RequestException as e:
            logger.warning("Failed to fetch %s: %s", url, e)
            return None

        final_url = resp.url or url
        if final_url != url:
            logger.info("Redirected: %s -> %s", url, final_url)
            corrected = correct_locale_path(final_url)
            if corrected:
                logger.warning("Duplicated locale path in %s, retrying %s", final_url, corrected)
                try:
                    return self._to_page(corrected, self._get(corrected))
                except requests.RequestException as e:
                    logger.warning("Corrected URL %s also failed: %s", corrected, e)

        return self._to_page(url, resp)

"""URL canonicalisation and crawl eligibility rules."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urljoin, urlparse, urlunparse

from a11y_auditor.config import LEGACY_REDIRECT_DOMAINS

# Directories that belong to build tooling, VCS metadata or framework
# scaffolding rather than site content.
_NON_CONTENT_DIRS = [
    "react", "js", "javascript", "node_modules", "dist", "build", "coverage",
    "docs", "examples", "demo", "test", "tests", "spec", "__tests__", "__mocks__",
    ".storybook", ".next", ".nuxt", ".vuepress", ".docusaurus", ".gatsby",
    ".angular", ".svelte", ".astro", ".remix", ".solid", ".qwik", ".lit",
    ".preact", ".inferno", ".hyperapp", ".marko", ".riot", ".mint", ".elm",
    ".clojure", ".reason", ".re", ".ml", ".fs", ".hs", ".scala", ".java", ".kt",
    ".swift", ".go", ".rs", ".py", ".rb", ".php", ".asp", ".jsp", ".aspx",
    ".cshtml", ".razor", ".blazor", ".vue",
]

# Project files and dot-directories matched as a path prefix
_NON_CONTENT_FILES = [
    "package.json", "package-lock.json", "yarn.lock", "webpack.config",
    "vite.config", "tsconfig", ".env", ".git", ".github", ".vscode", ".idea",
]

EXCLUDED_PATTERNS: list[re.Pattern] = [
    re.compile(r"\.(pdf|doc|docx|xls|xlsx|ppt|pptx|zip|rar|exe|dmg|pkg)$", re.I),
    re.compile(r"\.(jpg|jpeg|png|gif|svg|ico|webp|bmp)$", re.I),
    re.compile(r"\.(css|js|xml|json|txt|log)$", re.I),
    re.compile(r"mailto:"),
    re.compile(r"tel:"),
    re.compile(r"javascript:"),
    re.compile(r"#"),
    re.compile(r"\?.*logout", re.I),
    re.compile(r"\?.*signout", re.I),
    *(re.compile(rf"/{re.escape(d)}/", re.I) for d in _NON_CONTENT_DIRS),
    *(re.compile(rf"/{re.escape(f)}", re.I) for f in _NON_CONTENT_FILES),
]

_SITEMAP_FILE = re.compile(r"/sitemap[^/]*\.xml$", re.I)


def normalize_url(url: str) -> str:
    """Canonical form used for visited/frontier comparisons.

    ``https://host`` and ``https://host///`` both become ``https://host/``;
    ``https://host/a/`` becomes ``https://host/a``. Input that cannot be
    parsed is returned as given.
    """
    candidate = url.strip()
    if not candidate.lower().startswith(("http://", "https://")):
        candidate = f"https://{candidate}"
    try:
        parsed = urlparse(candidate)
        # Accessing .port validates it
        parsed.port
    except ValueError:
        return url
    if not parsed.netloc:
        return url

    netloc = parsed.netloc.lower()
    scheme = parsed.scheme.lower()
    path = parsed.path.rstrip("/")
    if not path:
        path = "/"
    return urlunparse((scheme, netloc, path, parsed.params, parsed.query, parsed.fragment))


def resolve_url(href: str, base_url: str) -> Optional[str]:
    """Turn an href or sitemap <loc> into an absolute URL, or None."""
    href = href.strip()
    if not href:
        return None
    try:
        if href.startswith(("http://", "https://")):
            return href
        if href.startswith("//"):
            return f"https:{href}"
        base = urlparse(base_url)
        if href.startswith("/"):
            if not base.netloc:
                return None
            return f"{base.scheme}://{base.netloc}{href}"
        return urljoin(base_url, href)
    except ValueError:
        return None


def is_crawlable(url: str, allowed_domain: str) -> bool:
    """True when ``url`` is on an allowed host and looks like a content page."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return False
    if not hostname:
        return False

    allowed = {allowed_domain.lower(), *LEGACY_REDIRECT_DOMAINS}
    if hostname not in allowed:
        return False

    return not any(pattern.search(url) for pattern in EXCLUDED_PATTERNS)


def is_excluded_file(url: str) -> bool:
    """robots.txt and sitemap XML files are never content pages."""
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return False
    if path.endswith("/robots.txt"):
        return True
    return bool(_SITEMAP_FILE.search(path))


def url_hostname(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""

from bs4 import BeautifulSoup

from a11y_auditor.urls import is_crawlable, resolve_url


def extract_links(html: str, base_url: str, domain: str) -> list[str]:
    """Crawlable absolute URLs of every <a href> in ``html``, first-seen order."""
    soup = BeautifulSoup(html, "lxml")
    links: list[str] = []
    seen: set[str] = set()

    for a in soup.find_all("a", href=True):
        absolute = resolve_url(a["href"], base_url)
        if not absolute or absolute in seen:
            continue
        if is_crawlable(absolute, domain):
            seen.add(absolute)
            links.append(absolute)

    return links

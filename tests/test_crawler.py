"""Tests for the breadth-first site crawler."""

import threading
from unittest.mock import Mock, patch

import pytest

from a11y_auditor.crawler import Crawler, CrawlResult, validate_target
from a11y_auditor.errors import InvalidArgumentError
from a11y_auditor.fetcher import FetchedPage, PageFetcher
from a11y_auditor.models import CrawlTarget
from conftest import html_page, make_response


class FakeSite:
    """Serves canned pages by URL; unknown URLs fail like a network error."""

    def __init__(self, pages):
        self.pages = pages
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        page = self.pages.get(url)
        if page is None:
            return None
        if isinstance(page, FetchedPage):
            return page
        title, links = page
        return FetchedPage(url=url, title=title, html=html_page(title=title, links=links),
                           status_code=200, content_type="text/html")


def make_crawler(pages, sitemap_urls=(), sleep=None, delay=0):
    site = FakeSite(pages)
    resolver = Mock()
    resolver.resolve.return_value = list(sitemap_urls)
    crawler = Crawler(fetcher=site, sitemap_resolver=resolver, delay=delay, sleep=sleep or Mock())
    return crawler, site, resolver


SITE = {
    "https://example.com/": ("Home", ["/a", "/b"]),
    "https://example.com/a": ("A", ["/a1", "/"]),
    "https://example.com/b": ("B", ["/b1"]),
    "https://example.com/a1": ("A1", []),
    "https://example.com/b1": ("B1", []),
}


class TestValidateTarget:
    """Test cases for validate_target."""

    @pytest.mark.parametrize("url", ["", "   "])
    def test_empty_url(self, url):
        with pytest.raises(InvalidArgumentError):
            validate_target(CrawlTarget(url=url))

    @pytest.mark.parametrize("max_pages", [0, -1, 501])
    def test_max_pages_out_of_range(self, max_pages):
        with pytest.raises(InvalidArgumentError):
            validate_target(CrawlTarget(url="https://example.com", max_pages=max_pages))

    def test_invalid_target_does_no_io(self):
        crawler, site, resolver = make_crawler(SITE)
        with pytest.raises(InvalidArgumentError):
            crawler.crawl(CrawlTarget(url="https://example.com", max_pages=0))
        assert site.fetched == []
        resolver.resolve.assert_not_called()


class TestCrawler:
    """Test cases for Crawler.crawl."""

    def test_breadth_first_order(self):
        crawler, _, _ = make_crawler(SITE)
        result = crawler.crawl(CrawlTarget(url="https://example.com", max_pages=10))

        assert [p.url for p in result.pages] == [
            "https://example.com/",
            "https://example.com/a",
            "https://example.com/b",
            "https://example.com/a1",
            "https://example.com/b1",
        ]
        assert [p.depth for p in result.pages] == [0, 1, 1, 2, 2]

    def test_respects_page_budget(self):
        crawler, _, _ = make_crawler(SITE)
        result = crawler.crawl(CrawlTarget(url="https://example.com", max_pages=2))
        assert len(result.pages) == 2

    def test_no_duplicate_urls(self):
        crawler, site, _ = make_crawler(
            SITE, sitemap_urls=["https://example.com/a/", "https://example.com/b"],
        )
        result = crawler.crawl(CrawlTarget(url="https://example.com/", max_pages=10))

        urls = [p.url for p in result.pages]
        assert len(urls) == len(set(urls))
        assert len(site.fetched) == len(set(site.fetched))

    def test_sitemap_urls_seed_frontier(self):
        pages = dict(SITE)
        pages["https://example.com/orphan"] = ("Orphan", [])
        crawler, _, resolver = make_crawler(pages, sitemap_urls=["https://example.com/orphan"])
        result = crawler.crawl(CrawlTarget(url="https://example.com", max_pages=10))

        resolver.resolve.assert_called_once_with("https://example.com/", "example.com")
        assert result.pages[1].url == "https://example.com/orphan"
        assert result.pages[1].depth == 1

    def test_homepage_only(self):
        crawler, site, resolver = make_crawler(SITE)
        with patch("a11y_auditor.crawler.extract_links") as extract:
            result = crawler.crawl(CrawlTarget(url="https://example.com", homepage_only=True))

        assert [p.url for p in result.pages] == ["https://example.com/"]
        assert site.fetched == ["https://example.com/"]
        extract.assert_not_called()
        resolver.resolve.assert_not_called()

    def test_failed_fetch_is_isolated(self):
        pages = {
            "https://example.com/": ("Home", ["/broken", "/ok"]),
            "https://example.com/ok": ("OK", []),
        }
        crawler, _, _ = make_crawler(pages)
        result = crawler.crawl(CrawlTarget(url="https://example.com", max_pages=10))

        assert [p.url for p in result.pages] == ["https://example.com/", "https://example.com/ok"]
        assert result.failed_urls == ["https://example.com/broken"]

    def test_start_page_failure_returns_empty(self):
        crawler, _, _ = make_crawler({})
        result = crawler.crawl(CrawlTarget(url="https://example.com", max_pages=10))
        assert result.pages == []
        assert result.failed_urls == ["https://example.com/"]

    def test_soft_404_and_non_html_skipped(self):
        pages = {
            "https://example.com/": ("Home", ["/gone", "/data"]),
            "https://example.com/gone": ("404 - Page not found", []),
            "https://example.com/data": FetchedPage(
                url="https://example.com/data", title="Untitled", html="",
                status_code=200, content_type="application/octet-stream",
            ),
        }
        crawler, _, _ = make_crawler(pages)
        result = crawler.crawl(CrawlTarget(url="https://example.com", max_pages=10))

        assert [p.url for p in result.pages] == ["https://example.com/"]
        assert sorted(result.skipped_urls) == ["https://example.com/data", "https://example.com/gone"]

    def test_corrected_duplicate_collected_once(self):
        about = FetchedPage(url="https://example.com/en/about", title="About",
                            html=html_page(title="About"), status_code=200, content_type="text/html")
        pages = {
            "https://example.com/": ("Home", ["/en/about", "/en/about-us"]),
            "https://example.com/en/about": about,
            "https://example.com/en/about-us": about,
        }
        crawler, _, _ = make_crawler(pages)
        result = crawler.crawl(CrawlTarget(url="https://example.com", max_pages=10))

        assert [p.url for p in result.pages] == ["https://example.com/", "https://example.com/en/about"]

    def test_delay_between_fetches(self):
        sleep = Mock()
        crawler, _, _ = make_crawler(SITE, sleep=sleep, delay=0.5)
        crawler.crawl(CrawlTarget(url="https://example.com", max_pages=10))

        # no sleep after the final page
        assert sleep.call_count == 4
        sleep.assert_called_with(0.5)

    def test_cancellation(self):
        cancel = threading.Event()
        sleep = Mock(side_effect=lambda _: cancel.set())
        crawler, site, _ = make_crawler(SITE, sleep=sleep, delay=1)
        result = crawler.crawl(CrawlTarget(url="https://example.com", max_pages=10), cancel_event=cancel)

        assert result.cancelled is True
        assert [p.url for p in result.pages] == ["https://example.com/"]
        assert site.fetched == ["https://example.com/"]


def test_crawled_pages_are_selected():
    crawler, _, _ = make_crawler(SITE)
    result = crawler.crawl(CrawlTarget(url="https://example.com", max_pages=1))

    assert isinstance(result, CrawlResult)
    assert [p.to_wire() for p in result.crawled_pages] == [
        {"url": "https://example.com/", "title": "Home", "selected": True},
    ]


def serve(session, routes):
    """Answer GETs from ``routes``: url -> (final url, title, hrefs)."""

    def fake_get(url, **kwargs):
        final_url, title, links = routes[url]
        return make_response(text=html_page(title=title, links=links), url=final_url)

    session.get.side_effect = fake_get


class TestCrawlerRedirects:
    """Crawling through PageFetcher when the server redirects."""

    def _crawl(self, session):
        resolver = Mock()
        resolver.resolve.return_value = []
        crawler = Crawler(fetcher=PageFetcher(session=session), sitemap_resolver=resolver,
                          delay=0, sleep=Mock())
        return crawler.crawl(CrawlTarget(url="https://example.com", max_pages=10))

    def test_redirect_target_collected_once(self, session):
        serve(session, {
            "https://example.com/": ("https://example.com/", "Home", ["/old", "/new"]),
            # 301 /old -> /new, followed by requests
            "https://example.com/old": ("https://example.com/new", "New", []),
            "https://example.com/new": ("https://example.com/new", "New", []),
        })
        result = self._crawl(session)

        assert [(p.url, p.title) for p in result.pages] == [
            ("https://example.com/", "Home"),
            ("https://example.com/old", "New"),
        ]
        requested = [c.args[0] for c in session.get.call_args_list]
        assert "https://example.com/new" not in requested

    def test_links_resolve_against_redirect_target(self, session):
        serve(session, {
            "https://example.com/": ("https://example.com/", "Home", ["/guide"]),
            "https://example.com/guide": ("https://example.com/guide/intro/", "Intro", ["setup"]),
            "https://example.com/guide/intro/setup": ("https://example.com/guide/intro/setup", "Setup", []),
        })
        result = self._crawl(session)

        assert [p.url for p in result.pages] == [
            "https://example.com/",
            "https://example.com/guide",
            "https://example.com/guide/intro/setup",
        ]


def test_unexpected_fetch_error_isolated():
    class FlakySite(FakeSite):
        def fetch(self, url):
            if url.endswith("/a"):
                self.fetched.append(url)
                raise RuntimeError("parser exploded")
            return super().fetch(url)

    site = FlakySite(SITE)
    resolver = Mock()
    resolver.resolve.return_value = []
    crawler = Crawler(fetcher=site, sitemap_resolver=resolver, delay=0, sleep=Mock())
    result = crawler.crawl(CrawlTarget(url="https://example.com", max_pages=10))

    assert result.failed_urls == ["https://example.com/a"]
    assert [p.url for p in result.pages] == [
        "https://example.com/",
        "https://example.com/b",
        "https://example.com/b1",
    ]

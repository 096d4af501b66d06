"""Shared fixtures: fake HTTP responses and sessions, no network access."""

from unittest.mock import Mock

import pytest
import requests


def make_response(
    status_code=200,
    text="",
    url="",
    content_type="text/html; charset=utf-8",
    json_data=None,
    reason="",
):
    """Build a stand-in for requests.Response."""
    resp = Mock(spec=requests.Response)
    resp.status_code = status_code
    resp.text = text
    resp.content = text.encode("utf-8")
    resp.url = url
    resp.reason = reason
    resp.headers = {"Content-Type": content_type} if content_type else {}
    if json_data is None:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        resp.json.return_value = json_data
    return resp


def html_page(title="Home", body="", links=()):
    anchors = "".join(f'<a href="{href}">link</a>' for href in links)
    return f"<html><head><title>{title}</title></head><body>{body}{anchors}</body></html>"


@pytest.fixture
def session():
    """A requests.Session double whose get/post are configured per test."""
    s = Mock(spec=requests.Session)
    s.headers = {}
    return s


@pytest.fixture
def no_sleep():
    return Mock()

from __future__ import annotations

import pytest

from feedreader.errors import FetchError, ValidationError
from feedreader.services import discovery
from feedreader.services.discovery import (
    FeedLinkCandidate,
    discover_feeds,
    extract_feed_links,
    find_feed_links,
    parse_html,
)

from tests.factories import FakeHttp, make_response


def test_single_rss_link_in_head():
    markup = (
        '<head><link rel="alternate" type="application/rss+xml" '
        'title="Feed A" href="https://x/a.xml"></head>'
    )

    assert extract_feed_links(markup) == [FeedLinkCandidate(title="Feed A", href="https://x/a.xml")]


def test_stylesheet_link_is_ignored():
    markup = '<head><link rel="stylesheet" type="text/css" href="/style.css"></head>'

    assert extract_feed_links(markup) == []


def test_page_without_links_yields_empty_list():
    assert extract_feed_links("<html><body><p>hello</p></body></html>") == []


def test_links_are_returned_in_document_order_with_duplicates():
    markup = """
    <html>
      <head>
        <link rel="alternate" type="application/atom+xml" title="Atom" href="/atom.xml">
        <link rel="alternate" type="application/rss+xml" title="RSS" href="/rss.xml">
      </head>
      <body>
        <div><section>
          <link rel="alternate" type="application/rss+xml" title="RSS again" href="/rss.xml">
        </section></div>
        <footer><link rel="alternate" type="application/rss+xml" title="Comments" href="/comments.xml"></footer>
      </body>
    </html>
    """

    assert [(c.title, c.href) for c in extract_feed_links(markup)] == [
        ("Atom", "/atom.xml"),
        ("RSS", "/rss.xml"),
        ("RSS again", "/rss.xml"),
        ("Comments", "/comments.xml"),
    ]


@pytest.mark.parametrize(
    "rel,link_type,expected",
    [
        ("ALTERNATE", "APPLICATION/RSS+XML", True),
        ("Alternate", "application/x-atom+xml", True),
        ("alternate", "text/rss", True),
        ("alternate", "application/json", False),
        ("alternate", "", False),
        ("alternate stylesheet", "application/rss+xml", False),
        ("", "application/rss+xml", False),
        ("feed", "application/atom+xml", False),
    ],
)
def test_rel_and_type_matching(rel, link_type, expected):
    markup = f'<link rel="{rel}" type="{link_type}" title="t" href="/f">'

    assert bool(extract_feed_links(markup)) is expected


def test_missing_title_and_href_become_empty_strings():
    markup = '<link rel="alternate" type="application/rss+xml">'

    assert extract_feed_links(markup) == [FeedLinkCandidate(title="", href="")]


def test_anchor_tags_are_not_feed_links():
    markup = '<a rel="alternate" type="application/rss+xml" href="/feed">feed</a>'

    assert extract_feed_links(markup) == []


def test_node_cap_stops_the_walk():
    filler = "<div></div>" * 50
    markup = (
        f'<html><head><link rel="alternate" type="application/rss+xml" href="/early.xml"></head>'
        f"<body>{filler}<link rel=\"alternate\" type=\"application/rss+xml\" href=\"/late.xml\"></body></html>"
    )
    document = parse_html(markup)

    assert [c.href for c in find_feed_links(document, max_nodes=10)] == ["/early.xml"]
    assert [c.href for c in find_feed_links(document, max_nodes=10_000)] == ["/early.xml", "/late.xml"]


def test_node_cap_defaults_to_configuration(monkeypatch):
    monkeypatch.setenv("FEED_DISCOVERY_MAX_NODES", "3")
    from feedreader.config import clear_config_cache

    clear_config_cache()
    markup = (
        "<html><head><title>x</title><meta charset='utf-8'>"
        '<link rel="alternate" type="application/rss+xml" href="/f.xml"></head></html>'
    )

    assert extract_feed_links(markup) == []


def test_deeply_nested_document_does_not_recurse():
    depth = 1500
    markup = "<div>" * depth + '<link rel="alternate" type="application/rss+xml" href="/deep.xml">' + "</div>" * depth

    assert [c.href for c in extract_feed_links(markup)] == ["/deep.xml"]


def test_discover_feeds_resolves_relative_links(monkeypatch):
    page = """
    <html><head>
      <link rel="alternate" type="application/rss+xml" title="Posts" href="/feed.xml">
      <link rel="alternate" type="application/atom+xml" title="Elsewhere" href="https://cdn.example.org/atom">
      <link rel="alternate" type="application/rss+xml" title="Blank" href="">
    </head></html>
    """
    fake = FakeHttp({"https://example.com/blog": make_response("https://example.com/blog/", page)})
    monkeypatch.setattr("feedreader.services.http.requests.get", fake)

    candidates = discover_feeds("https://example.com/blog")

    assert candidates == [
        FeedLinkCandidate(title="Posts", href="https://example.com/feed.xml"),
        FeedLinkCandidate(title="Elsewhere", href="https://cdn.example.org/atom"),
    ]
    assert fake.calls[0]["timeout"] == 10.0
    assert "User-Agent" in fake.calls[0]["headers"]


def test_discover_feeds_returns_empty_list_when_page_has_none(monkeypatch):
    fake = FakeHttp({"https://example.com/": make_response("https://example.com/", "<html></html>")})
    monkeypatch.setattr("feedreader.services.http.requests.get", fake)

    assert discover_feeds("https://example.com/") == []


def test_discover_feeds_non_success_status_is_fetch_error(monkeypatch):
    fake = FakeHttp({"https://example.com/missing": make_response("https://example.com/missing", "nope", status_code=404)})
    monkeypatch.setattr("feedreader.services.http.requests.get", fake)

    with pytest.raises(FetchError) as excinfo:
        discover_feeds("https://example.com/missing")

    assert "404" in excinfo.value.message
    assert excinfo.value.cause is not None


def test_discover_feeds_network_error_is_fetch_error(monkeypatch):
    monkeypatch.setattr("feedreader.services.http.requests.get", FakeHttp())

    with pytest.raises(FetchError) as excinfo:
        discover_feeds("https://unreachable.example.com/")

    assert excinfo.value.details["url"] == "https://unreachable.example.com/"
    assert "no route" in excinfo.value.details["cause"]


@pytest.mark.parametrize("url", ["", "   ", "example.com", "ftp://example.com/feed", "https://"])
def test_discover_feeds_rejects_invalid_urls(monkeypatch, url):
    fake = FakeHttp()
    monkeypatch.setattr("feedreader.services.http.requests.get", fake)

    with pytest.raises(ValidationError):
        discover_feeds(url)
    assert fake.calls == []


def test_is_feed_link_only_matches_link_elements():
    document = parse_html('<meta rel="alternate" type="application/rss+xml">')

    assert not discovery.is_feed_link(document.find("meta"))

"""Seasonal article listings announced alongside the weather."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Tag

from sunrise.core.config import settings

logger = logging.getLogger(__name__)

TAYORI_URL = "http://www.i-nekko.jp/hibinotayori/"
SAIJIKI_URL = "http://www.i-nekko.jp/category.html"
TENKIJP_URL = "https://tenki.jp/suppl/entries/1/"

# Announcement priority
SOURCES = ("tayori", "saijiki", "tenkijp")

_SAIJIKI_DATE_SPLIT = re.compile(r"[年月日]")


@dataclass(frozen=True)
class Article:
    title: str
    link: str
    date: str | None = None
    category: str | None = None


def _text(node: Tag, selector: str) -> str:
    found = node.select_one(selector)
    return found.get_text(strip=True) if found else ""


def _attr(node: Tag, selector: str, name: str) -> str:
    found = node.select_one(selector)
    value = found.get(name) if found else None
    return str(value) if value else ""


def parse_tayori(html: str) -> list[Article]:
    soup = BeautifulSoup(html, "html.parser")
    return [
        Article(
            title=_text(panel, ".blog-title"),
            link=_attr(panel, ".blog-title > a", "href"),
            date=_text(panel, ".blog-date") or None,
        )
        for panel in soup.select("section.blog-panel")
    ]


def _saijiki_sort_key(article: Article) -> datetime:
    tokens = [token.strip() for token in _SAIJIKI_DATE_SPLIT.split(article.date or "")]
    try:
        year, month, day = (int(token) for token in tokens[:3])
        hour, minute = (int(part) for part in (tokens[3] or "0:0").split(":")[:2]) if len(tokens) > 3 else (0, 0)
        return datetime(year, month, day, hour, minute)
    except ValueError:
        logger.debug("Unparseable saijiki date %r", article.date)
        return datetime.min


def parse_saijiki(html: str) -> list[Article]:
    """All archive entries across categories, newest first."""

    soup = BeautifulSoup(html, "html.parser")
    articles: list[Article] = []
    for archive in soup.select(".archive-list"):
        category = _attr(archive, ".archive-list-title > img", "alt")
        for box in archive.select(".archive-list-box"):
            articles.append(
                Article(
                    title=_text(box, ".date + p"),
                    link=_attr(box, "a", "href"),
                    date=_text(box, ".date") or None,
                    category=category or None,
                )
            )
    return list(reversed(sorted(articles, key=_saijiki_sort_key)))


def parse_tenkijp(html: str, base_url: str = "https://tenki.jp/") -> list[Article]:
    soup = BeautifulSoup(html, "html.parser")
    return [
        Article(
            title=_text(item, ".recent-entries-title"),
            link=urljoin(base_url, _attr(item, "a", "href")),
        )
        for item in soup.select(".recent-entries > ul > li")
    ]


def announcement_title(source: str, article: Article) -> str:
    if source == "saijiki" and article.category:
        return f"{article.category}「{article.title}」"
    return article.title


def choose_announcement(
    listings: Mapping[str, list[Article]],
    last_urls: Mapping[str, str],
) -> tuple[Article | None, dict[str, str]]:
    """Pick the first source whose newest article was not announced yet.

    Returns the announcement (title already formatted) and the updated map of
    last announced links per source.
    """

    updated = dict(last_urls)
    for source in SOURCES:
        articles = listings.get(source) or []
        if not articles:
            continue
        newest = articles[0]
        if last_urls.get(source) != newest.link:
            updated[source] = newest.link
            return Article(title=announcement_title(source, newest), link=newest.link), updated
    return None, updated


class ArticleFetcher:
    """Download and parse the three article listings."""

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(timeout=settings.article_fetch_timeout, follow_redirects=True)

    def close(self) -> None:
        self._client.close()

    def fetch_all(self) -> dict[str, list[Article]]:
        logger.info("Fetching season articles...")
        return {
            "tayori": parse_tayori(self._get(TAYORI_URL)),
            "saijiki": parse_saijiki(self._get(SAIJIKI_URL)),
            "tenkijp": parse_tenkijp(self._get(TENKIJP_URL)),
        }

    def _get(self, url: str) -> str:
        response = self._client.get(url)
        response.raise_for_status()
        return response.text


__all__ = [
    "Article",
    "ArticleFetcher",
    "SOURCES",
    "announcement_title",
    "choose_announcement",
    "parse_saijiki",
    "parse_tayori",
    "parse_tenkijp",
]

"""Today's haiku from the Sendan daily page."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup

from sunrise.core.config import settings

logger = logging.getLogger(__name__)

HAIKU_SELECTOR = 'td[rowspan="7"][width="590"] center'


@dataclass(frozen=True)
class Haiku:
    text: str
    author: str


def parse_haiku(content: bytes, encoding: str = "shift_jis") -> Haiku:
    soup = BeautifulSoup(content.decode(encoding, errors="replace"), "html.parser")
    text = "".join(node.get_text() for node in soup.select(f"{HAIKU_SELECTOR} font"))
    author = "".join(node.get_text() for node in soup.select(f"{HAIKU_SELECTOR} b"))
    return Haiku(text=text.strip(), author=author.strip())


def fetch_haiku(client: httpx.Client | None = None, url: str | None = None) -> Haiku:
    """Download and parse the page (Shift_JIS encoded)."""

    logger.info("Fetching today's haiku...")
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=settings.article_fetch_timeout, proxy=settings.haiku_proxy)
    try:
        response = client.get(url or settings.haiku_url)
        response.raise_for_status()
        return parse_haiku(response.content)
    finally:
        if owns_client:
            client.close()


__all__ = ["Haiku", "fetch_haiku", "parse_haiku"]

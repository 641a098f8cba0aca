"""
Direct page fetch + main-content extraction, used for tone-sample URLs.
"""
import logging
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from blogwriter.errors import UpstreamError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; SEOBlogWriter/1.0; +https://example.com/bot)"
NOISE_TAGS = ["script", "style", "nav", "footer", "header", "aside", "form"]
MAX_PAGE_CHARS = 3000


def extract_main_text(raw_html: str, max_chars: int = MAX_PAGE_CHARS) -> str:
    soup = BeautifulSoup(raw_html, "lxml")

    for tag in soup(NOISE_TAGS):
        tag.decompose()

    content_el = (
        soup.find("article")
        or soup.find(class_="post-content")
        or soup.find(class_="entry-content")
        or soup.find("main")
        or soup.find("body")
    )
    if content_el is None:
        return ""
    return content_el.get_text(separator=" ", strip=True)[:max_chars]


def fetch_page_text(
    url: str,
    timeout: float = 60.0,
    transport: Optional[httpx.BaseTransport] = None,
    max_chars: int = MAX_PAGE_CHARS,
) -> str:
    vendor = f"Page {url}"
    try:
        with httpx.Client(timeout=timeout, follow_redirects=True, transport=transport) as client:
            resp = client.get(url, headers={"User-Agent": USER_AGENT})
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise UpstreamError(vendor, detail=type(exc).__name__) from exc

    if not resp.is_success:
        raise UpstreamError(vendor, resp.status_code)

    text = extract_main_text(resp.text, max_chars)
    logger.debug("Extracted %d chars from %s", len(text), url)
    return text

"""
Per-item research loops. One outbound call per keyword/URL; a failing item gets
the sentinel and never aborts the batch.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Optional

import httpx

from blogwriter.errors import UpstreamError
from blogwriter.pages import fetch_page_text
from blogwriter.vendors import SearchClient

logger = logging.getLogger(__name__)

RESEARCH_UNAVAILABLE = "Research unavailable"


# ── Prompt templates ──────────────────────────────────────────────────────────

def build_keyword_prompt(keyword: str) -> str:
    return (
        f'You are a senior market researcher. Research the topic "{keyword}" using '
        "current web sources and produce a structured Markdown breakdown that a "
        "content writer can rely on for an in-depth SEO blog post.\n\n"
        "Use ## for section headings and - for bullet points. Include:\n\n"
        "## Overview\n"
        "What the topic is, why people search for it, and the dominant search intent.\n\n"
        "## Key Features\n"
        "The main features, components or capabilities that matter for this topic.\n\n"
        "## Ideal Customer Profile\n"
        "Who is searching for this: roles, company sizes, pains and goals.\n\n"
        "## Differentiators\n"
        "What separates the leading products, services or approaches from each other.\n\n"
        "## Pricing Tiers\n"
        "Typical pricing models and tiers, with concrete numbers where available.\n\n"
        "## Frequently Asked Questions\n"
        "5-8 real questions people ask about this topic, each with a short answer.\n\n"
        "## Content Angles\n"
        "Statistics, examples and angles that would make an article stand out.\n\n"
        "Be factual and specific. Do not invent statistics; omit a section if no "
        "reliable information exists."
    )


def build_competitor_prompt(url: str) -> str:
    return (
        f"Analyze the blog post or page at {url} as an SEO competitor.\n\n"
        "Provide a concise Markdown summary with:\n"
        "## Main Topic\n"
        "## Headings and Structure\n"
        "## Topics Covered\n"
        "## Content Gaps\n"
        "What the page misses or covers poorly.\n"
        "## Angle\n"
        "The page's positioning and how a new article could beat it.\n\n"
        "Be specific and actionable."
    )


# ── Batch runner ──────────────────────────────────────────────────────────────

def _isolated(task: Callable[[str], str], item: str) -> str:
    try:
        result = task(item)
    except UpstreamError as exc:
        logger.warning("Research failed for %r: %s", item, exc)
        return RESEARCH_UNAVAILABLE
    if not result or not result.strip():
        logger.warning("Research returned no content for %r", item)
        return RESEARCH_UNAVAILABLE
    return result.strip()


def run_batch(
    items: Iterable[str],
    task: Callable[[str], str],
    max_workers: int = 1,
) -> dict[str, str]:
    """Run ``task`` once per distinct item; every item ends up in the mapping."""
    keys = list(dict.fromkeys(items))
    results = {key: RESEARCH_UNAVAILABLE for key in keys}
    if not keys:
        return results

    if max_workers <= 1 or len(keys) == 1:
        for key in keys:
            results[key] = _isolated(task, key)
        return results

    with ThreadPoolExecutor(max_workers=min(max_workers, len(keys))) as executor:
        future_to_key = {executor.submit(_isolated, task, key): key for key in keys}
        for future in as_completed(future_to_key):
            results[future_to_key[future]] = future.result()
    return results


# ── Public entry points ───────────────────────────────────────────────────────

def research_keywords(
    keywords: Iterable[str],
    search: SearchClient,
    max_workers: int = 1,
) -> dict[str, str]:
    def task(keyword: str) -> str:
        logger.info("Researching keyword: %s", keyword)
        return search.complete(
            [{"role": "user", "content": build_keyword_prompt(keyword)}],
            temperature=0.2,
            max_tokens=2000,
        )

    return run_batch(keywords, task, max_workers)


def research_competitors(
    urls: Iterable[str],
    search: SearchClient,
    max_workers: int = 1,
) -> dict[str, str]:
    def task(url: str) -> str:
        logger.info("Researching competitor: %s", url)
        return search.complete(
            [{"role": "user", "content": build_competitor_prompt(url)}],
            temperature=0.2,
            max_tokens=1500,
        )

    return run_batch(urls, task, max_workers)


def collect_tone_samples(
    urls: Iterable[str],
    timeout: float = 60.0,
    max_workers: int = 1,
    transport: Optional[httpx.BaseTransport] = None,
) -> dict[str, str]:
    def task(url: str) -> str:
        logger.info("Fetching tone sample: %s", url)
        return fetch_page_text(url, timeout=timeout, transport=transport)

    return run_batch(urls, task, max_workers)

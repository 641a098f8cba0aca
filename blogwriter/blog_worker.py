"""
Blog generation:
  keywords → Perplexity research per keyword → competitor research per URL
           → tone sample → brand profile → one Claude call → {title, content}
"""
import logging
from typing import Any, Optional

import httpx

from blogwriter.brand_store import BrandProfileStore
from blogwriter.config import Settings
from blogwriter.errors import UpstreamError, ValidationError
from blogwriter.extractors import from_brace_span, from_fence, from_quoted_fields, run_chain
from blogwriter.research_worker import (
    collect_tone_samples,
    research_competitors,
    research_keywords,
)
from blogwriter.schemas.models import GenerationRequest
from blogwriter.vendors import GenerationClient, SearchClient

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 10
MAX_COMPETITOR_URLS = 3
MAX_TONE_URLS = 3
TONE_SAMPLE_CHARS = 1000
GENERATION_TEMPERATURE = 0.7
GENERIC_TITLE = "Your SEO-Optimized Blog"

BRAND_LABELS = (
    ("brand_name", "Brand"),
    ("website_url", "Website"),
    ("industry", "Industry"),
    ("business_description", "Description"),
    ("target_audience", "Target audience"),
    ("benefits", "Key benefits"),
    ("tone_of_voice", "Tone of voice"),
    ("location", "Location"),
    ("language", "Language"),
)

CLOSING_INSTRUCTIONS = """Generate a comprehensive blog post that:
1. Naturally incorporates the target keywords
2. Provides unique insights and value
3. Uses engaging headings and subheadings
4. Includes actionable takeaways
5. Is approximately 1500-2000 words
6. Has a compelling introduction and conclusion

Return ONLY a JSON object with this structure:
{
  "title": "The blog title (incorporate primary keyword)",
  "content": "The full blog content in markdown format"
}"""


# ── Request validation ────────────────────────────────────────────────────────

def _clean(values: Optional[list[str]]) -> list[str]:
    """Strip, drop blanks, de-duplicate keeping first occurrence."""
    return list(dict.fromkeys(v.strip() for v in (values or []) if v and v.strip()))


def validate_request(request: GenerationRequest) -> GenerationRequest:
    keywords = _clean(request.keywords)
    if not keywords:
        raise ValidationError("Please add at least one keyword")
    if len(keywords) > MAX_KEYWORDS:
        raise ValidationError(f"At most {MAX_KEYWORDS} keywords are allowed")

    competitor_urls = _clean(request.competitor_urls)
    if len(competitor_urls) > MAX_COMPETITOR_URLS:
        raise ValidationError(f"At most {MAX_COMPETITOR_URLS} competitor URLs are allowed")

    tone_sample_urls = _clean(request.tone_sample_urls)
    if len(tone_sample_urls) > MAX_TONE_URLS:
        raise ValidationError(f"At most {MAX_TONE_URLS} tone sample URLs are allowed")

    return request.model_copy(update={
        "keywords": keywords,
        "competitor_urls": competitor_urls,
        "tone_sample_urls": tone_sample_urls,
        "tone_sample": (request.tone_sample or "").strip() or None,
        "user_id": (request.user_id or "").strip() or None,
    })


# ── Prompt assembly ───────────────────────────────────────────────────────────

def build_blog_prompt(
    keywords: list[str],
    findings: dict[str, str],
    brand: Optional[dict[str, Any]] = None,
    competitors: Optional[dict[str, str]] = None,
    tone_sample: Optional[str] = None,
    tone_pages: Optional[dict[str, str]] = None,
) -> str:
    parts = [
        "You are an expert SEO content writer. Generate a high-quality, SEO-optimized "
        "blog post with the following requirements:\n\n"
        f"Target Keywords: {', '.join(keywords)}\n"
    ]

    if brand:
        lines = [
            f"- {label}: {brand[key]}" for key, label in BRAND_LABELS if brand.get(key)
        ]
        if lines:
            parts.append(
                "\nBRAND CONTEXT (write on behalf of this brand):\n" + "\n".join(lines) + "\n"
            )

    if findings:
        block = "\nKEYWORD RESEARCH:\n"
        for keyword in keywords:
            block += f"\n### {keyword}\n{findings.get(keyword, '')}\n"
        parts.append(block)

    if competitors:
        block = "\nCOMPETITOR ANALYSIS (analyze and improve upon these competitor blogs):\n"
        for idx, (url, analysis) in enumerate(competitors.items(), 1):
            block += f"\n{idx}. {url}\n{analysis}\n"
        parts.append(block)

    if tone_sample:
        parts.append(
            "\nMatch the tone and writing style of this example:\n"
            f"{tone_sample[:TONE_SAMPLE_CHARS]}...\n"
        )
    elif tone_pages:
        block = "\nMatch the tone and writing style of these examples:\n"
        for url, text in tone_pages.items():
            block += f"\n--- {url} ---\n{text}\n"
        parts.append(block)

    parts.append("\n" + CLOSING_INSTRUCTIONS)
    return "".join(parts)


# ── Reply recovery ────────────────────────────────────────────────────────────

def fallback_title(keywords: list[str]) -> str:
    return f"How to Master {keywords[0]}" if keywords else GENERIC_TITLE


def _has_blog_field(candidate: dict[str, Any]) -> bool:
    return any(
        isinstance(candidate.get(key), str) and candidate[key].strip()
        for key in ("title", "content")
    )


def parse_blog_reply(raw_text: str, keywords: list[str]) -> dict[str, str]:
    """Fence → brace span → quoted fields → keyword title + raw reply."""
    fallback = {
        "title": fallback_title(keywords),
        "content": raw_text if raw_text.strip() else fallback_title(keywords),
    }
    candidate, tier = run_chain(
        raw_text,
        [from_fence, from_brace_span, from_quoted_fields],
        accept=_has_blog_field,
    )
    if candidate is None:
        logger.warning("Could not parse blog JSON; using raw reply as content")
        return fallback

    logger.info("Blog reply parsed by %s", tier)
    result = {}
    for key in ("title", "content"):
        value = candidate.get(key)
        result[key] = value.strip() if isinstance(value, str) and value.strip() else fallback[key]
    return result


# ── Main worker ───────────────────────────────────────────────────────────────

def _load_brand(
    user_id: Optional[str],
    settings: Settings,
    brand_store: Optional[BrandProfileStore],
) -> Optional[dict[str, Any]]:
    if not user_id:
        return None
    if brand_store is None:
        if not settings.brand_store_configured:
            logger.info("Brand store not configured; skipping brand profile")
            return None
        brand_store = BrandProfileStore(
            settings.supabase_url, settings.supabase_service_key, settings.request_timeout
        )
    try:
        return brand_store.fetch(user_id)
    except UpstreamError as exc:
        logger.warning("Brand profile lookup failed for %s: %s", user_id, exc)
        return None


def compose_blog(
    request: GenerationRequest,
    settings: Settings,
    search: Optional[SearchClient] = None,
    generation: Optional[GenerationClient] = None,
    brand_store: Optional[BrandProfileStore] = None,
    page_transport: Optional[httpx.BaseTransport] = None,
) -> dict[str, str]:
    request = validate_request(request)

    generation_key = settings.require("ANTHROPIC_API_KEY")
    search_key = settings.require("PERPLEXITY_API_KEY")
    if search is None:
        search = SearchClient(search_key, settings.search_model, settings.request_timeout)
    if generation is None:
        generation = GenerationClient(
            generation_key, settings.generation_model, settings.request_timeout
        )

    workers = settings.research_max_workers
    logger.info("Generating blog for keywords: %s", ", ".join(request.keywords))

    findings = research_keywords(request.keywords, search, workers)

    competitors = {}
    if request.competitor_urls:
        competitors = research_competitors(request.competitor_urls, search, workers)

    tone_pages = {}
    if not request.tone_sample and request.tone_sample_urls:
        tone_pages = collect_tone_samples(
            request.tone_sample_urls, settings.request_timeout, workers, page_transport
        )

    brand = _load_brand(request.user_id, settings, brand_store)

    prompt = build_blog_prompt(
        request.keywords,
        findings,
        brand=brand,
        competitors=competitors,
        tone_sample=request.tone_sample,
        tone_pages=tone_pages,
    )

    logger.info("Sending blog prompt to %s (%d chars)", generation.vendor, len(prompt))
    generated_text = generation.complete(
        [{"role": "user", "content": prompt}],
        temperature=GENERATION_TEMPERATURE,
        max_tokens=8192,
    )
    logger.debug("Generated text: %s", generated_text)

    return parse_blog_reply(generated_text, request.keywords)

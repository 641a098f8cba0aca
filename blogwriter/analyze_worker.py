"""
Website analysis: URL -> Perplexity (search-augmented) -> six-field brand profile.
"""
import logging
from typing import Any, Optional

from blogwriter.config import Settings
from blogwriter.errors import ValidationError
from blogwriter.extractors import from_fence_or_raw, run_chain
from blogwriter.vendors import SearchClient

logger = logging.getLogger(__name__)

ANALYSIS_FIELDS = (
    "brandName",
    "businessDescription",
    "targetAudience",
    "benefits",
    "industry",
    "toneOfVoice",
)

PLACEHOLDERS = {
    "brandName": "Unknown",
    "targetAudience": "General audience",
    "benefits": "To be determined",
    "industry": "General",
    "toneOfVoice": "Professional",
}

DESCRIPTION_CHARS = 200
MISSING_DESCRIPTION = "No description available"


def build_analysis_prompt(website_url: str) -> str:
    return (
        "You are a business analyst. Analyze websites and return structured JSON data only.\n\n"
        f"Analyze the website {website_url} and provide a structured analysis with the "
        "following information:\n\n"
        "1. Brand Name: The company or brand name\n"
        "2. Business Description: A 2-3 sentence summary of what the business does\n"
        "3. Target Audience: Who are their primary customers/users\n"
        "4. Key Benefits: Main value propositions or benefits they offer\n"
        "5. Industry: The primary industry or sector they operate in\n"
        "6. Tone of Voice: Describe their communication style "
        "(e.g., professional, casual, technical, friendly)\n\n"
        "Format your response as a JSON object with these exact keys: "
        f"{', '.join(ANALYSIS_FIELDS)}\n\n"
        "Only return the JSON object, no additional text."
    )


def fallback_analysis(raw_text: str) -> dict[str, str]:
    """Placeholder profile built around the first 200 characters of the reply."""
    description = raw_text[:DESCRIPTION_CHARS].strip() or MISSING_DESCRIPTION
    result = dict(PLACEHOLDERS)
    result["businessDescription"] = description
    return {name: result[name] for name in ANALYSIS_FIELDS}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(_as_text(v) for v in value if _as_text(v))
    if isinstance(value, dict):
        return ", ".join(f"{k}: {_as_text(v)}" for k, v in value.items())
    return str(value).strip()


def parse_analysis(raw_text: str) -> dict[str, str]:
    """Recover the six-field profile; never fails, always fully populated."""
    fallback = fallback_analysis(raw_text)
    parsed, _ = run_chain(raw_text, [from_fence_or_raw])
    if parsed is None:
        logger.warning("Failed to parse JSON from website analysis; using placeholders")
        return fallback

    placeholders = dict(fallback, businessDescription=MISSING_DESCRIPTION)
    return {name: _as_text(parsed.get(name)) or placeholders[name] for name in ANALYSIS_FIELDS}


def analyze_website(
    website_url: str,
    settings: Settings,
    search: Optional[SearchClient] = None,
) -> dict[str, str]:
    website_url = (website_url or "").strip()
    if not website_url:
        raise ValidationError("Website URL is required")

    api_key = settings.require("PERPLEXITY_API_KEY")
    if search is None:
        search = SearchClient(api_key, settings.search_model, settings.request_timeout)

    logger.info("Analyzing website: %s", website_url)
    analysis_text = search.complete(
        [{"role": "user", "content": build_analysis_prompt(website_url)}],
        temperature=0.2,
        max_tokens=1000,
    )
    logger.debug("Analysis text: %s", analysis_text)

    return parse_analysis(analysis_text)

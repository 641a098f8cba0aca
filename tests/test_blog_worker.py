"""Tests for blog generation: prompt assembly, reply recovery and the pipeline."""

import json

import httpx
import pytest

from blogwriter.blog_worker import (
    GENERIC_TITLE,
    build_blog_prompt,
    compose_blog,
    parse_blog_reply,
    validate_request,
)
from blogwriter.errors import ConfigurationError, UpstreamError, ValidationError
from blogwriter.research_worker import RESEARCH_UNAVAILABLE
from blogwriter.schemas.models import GenerationRequest
from tests.fakes import FakeBrandStore, FakeGeneration, FakeSearch


def make_request(**kwargs) -> GenerationRequest:
    kwargs.setdefault("keywords", ["widgets"])
    return GenerationRequest(**kwargs)


# ── Reply recovery ────────────────────────────────────────────────────────────

class TestParseBlogReply:
    def test_fenced_json(self):
        reply = '```json\n{"title":"T","content":"C"}\n```'
        assert parse_blog_reply(reply, ["widgets"]) == {"title": "T", "content": "C"}

    def test_brace_boundary(self):
        reply = 'Here you go: {"title":"T","content":"C"} thanks!'
        assert parse_blog_reply(reply, ["widgets"]) == {"title": "T", "content": "C"}

    def test_quoted_fields(self):
        reply = 'Sure! {"title": "X", "content": "Y\\nZ" and then it broke'
        assert parse_blog_reply(reply, ["widgets"]) == {"title": "X", "content": "Y\nZ"}

    def test_total_fallback(self):
        reply = "Widgets are great. Here is a long article about them."
        assert parse_blog_reply(reply, ["widgets"]) == {
            "title": "How to Master widgets",
            "content": reply,
        }

    def test_fallback_without_keywords(self):
        assert parse_blog_reply("prose", [])["title"] == GENERIC_TITLE

    def test_fence_without_blog_fields_falls_through(self):
        reply = '```json\n{"foo": 1}\n```\n"title": "Real title", "content": "Body"'
        assert parse_blog_reply(reply, ["widgets"]) == {"title": "Real title", "content": "Body"}

    def test_missing_field_is_filled(self):
        reply = '{"title": "Only a title"}'
        result = parse_blog_reply(reply, ["widgets"])
        assert result == {"title": "Only a title", "content": reply}

    def test_fenced_content_with_code_blocks(self):
        body = "## Setup\n\n```bash\npip install widgets\n```\n\nDone."
        reply = "```json\n" + json.dumps({"title": "T", "content": body}) + "\n```"
        assert parse_blog_reply(reply, ["widgets"]) == {"title": "T", "content": body}

    @pytest.mark.parametrize("reply", ["", "   ", "{", "```json\n```", '{"title": ""}'])
    def test_always_non_empty(self, reply):
        result = parse_blog_reply(reply, ["widgets"])
        assert result["title"].strip()
        assert result["content"].strip()


# ── Validation ────────────────────────────────────────────────────────────────

class TestValidateRequest:
    def test_requires_a_keyword(self):
        with pytest.raises(ValidationError, match="at least one keyword"):
            validate_request(make_request(keywords=["  ", ""]))

    def test_keyword_limit(self):
        with pytest.raises(ValidationError):
            validate_request(make_request(keywords=[f"k{i}" for i in range(11)]))

    def test_competitor_limit(self):
        with pytest.raises(ValidationError):
            validate_request(make_request(competitor_urls=[f"https://{i}.test" for i in range(4)]))

    def test_cleans_values(self):
        request = validate_request(make_request(
            keywords=[" crm ", "crm", "erp"],
            competitor_urls=["", " https://a.test "],
            tone_sample="   ",
        ))
        assert request.keywords == ["crm", "erp"]
        assert request.competitor_urls == ["https://a.test"]
        assert request.tone_sample is None


# ── Prompt assembly ───────────────────────────────────────────────────────────

class TestBuildBlogPrompt:
    def test_sections_in_order(self):
        prompt = build_blog_prompt(
            ["crm", "erp"],
            {"crm": "CRM notes", "erp": "ERP notes"},
            brand={"brand_name": "Acme", "industry": "SaaS"},
            competitors={"https://rival.test": "rival notes"},
            tone_sample="Friendly voice.",
        )
        markers = [
            "Target Keywords: crm, erp",
            "BRAND CONTEXT",
            "KEYWORD RESEARCH",
            "CRM notes",
            "ERP notes",
            "COMPETITOR ANALYSIS",
            "https://rival.test",
            "Match the tone",
            "Return ONLY a JSON object",
        ]
        positions = [prompt.index(marker) for marker in markers]
        assert positions == sorted(positions)
        assert "1500-2000 words" in prompt
        assert '"title"' in prompt and '"content"' in prompt

    def test_optional_blocks_omitted(self):
        prompt = build_blog_prompt(["crm"], {"crm": "notes"})
        assert "BRAND CONTEXT" not in prompt
        assert "COMPETITOR ANALYSIS" not in prompt
        assert "Match the tone" not in prompt

    def test_tone_sample_truncated(self):
        prompt = build_blog_prompt(["crm"], {}, tone_sample="a" * 1500)
        assert "a" * 1000 + "..." in prompt
        assert "a" * 1001 not in prompt

    def test_tone_pages_used_in_full(self):
        text = "b" * 1500
        prompt = build_blog_prompt(["crm"], {}, tone_pages={"https://me.test": text})
        assert text in prompt
        assert "https://me.test" in prompt


# ── Pipeline ──────────────────────────────────────────────────────────────────

GOOD_REPLY = '```json\n{"title": "Widgets 101", "content": "# Widgets\\n\\nAll about widgets."}\n```'


def test_compose_blog_end_to_end(settings):
    search = FakeSearch(
        replies={'"widgets"': "widget research", "https://rival.test": "rival analysis"}
    )
    generation = FakeGeneration(reply=GOOD_REPLY)

    result = compose_blog(
        make_request(competitor_urls=["https://rival.test"]),
        settings,
        search=search,
        generation=generation,
    )

    assert result == {"title": "Widgets 101", "content": "# Widgets\n\nAll about widgets."}
    assert len(search.calls) == 2
    assert len(generation.calls) == 1
    call = generation.calls[0]
    assert call["temperature"] == 0.7
    assert len(call["messages"]) == 1
    prompt = call["messages"][0]["content"]
    assert "widget research" in prompt
    assert "rival analysis" in prompt


def test_failed_research_still_generates(settings):
    search = FakeSearch(fail_on=("Research the topic",))
    generation = FakeGeneration(reply=GOOD_REPLY)

    result = compose_blog(make_request(), settings, search=search, generation=generation)

    assert result["title"] == "Widgets 101"
    assert RESEARCH_UNAVAILABLE in generation.calls[0]["messages"][0]["content"]


def test_plain_prose_reply(settings):
    generation = FakeGeneration(reply="Just some prose, no JSON.")
    result = compose_blog(make_request(), settings, search=FakeSearch(), generation=generation)
    assert result == {"title": "How to Master widgets", "content": "Just some prose, no JSON."}


def test_generation_error_is_fatal(settings):
    generation = FakeGeneration(error=UpstreamError("Anthropic", 503))
    with pytest.raises(UpstreamError):
        compose_blog(make_request(), settings, search=FakeSearch(), generation=generation)


@pytest.mark.parametrize(
    "missing, kwargs",
    [
        ("ANTHROPIC_API_KEY", {"perplexity_api_key": "p"}),
        ("PERPLEXITY_API_KEY", {"anthropic_api_key": "a"}),
    ],
)
def test_missing_credentials(missing, kwargs):
    from blogwriter.config import Settings

    with pytest.raises(ConfigurationError, match=missing):
        compose_blog(
            make_request(), Settings(**kwargs), search=FakeSearch(), generation=FakeGeneration()
        )


def test_brand_profile_is_included(settings):
    store = FakeBrandStore(profile={"brand_name": "Acme", "tone_of_voice": "Cheeky"})
    generation = FakeGeneration(reply=GOOD_REPLY)

    compose_blog(
        make_request(user_id="user-1"),
        settings,
        search=FakeSearch(),
        generation=generation,
        brand_store=store,
    )

    assert store.user_ids == ["user-1"]
    prompt = generation.calls[0]["messages"][0]["content"]
    assert "- Brand: Acme" in prompt
    assert "- Tone of voice: Cheeky" in prompt


def test_brand_store_failure_is_tolerated(settings):
    store = FakeBrandStore(error=UpstreamError("Supabase", 500))
    generation = FakeGeneration(reply=GOOD_REPLY)

    result = compose_blog(
        make_request(user_id="user-1"),
        settings,
        search=FakeSearch(),
        generation=generation,
        brand_store=store,
    )

    assert result["title"] == "Widgets 101"
    assert "BRAND CONTEXT" not in generation.calls[0]["messages"][0]["content"]


def test_brand_skipped_without_user_id(settings):
    store = FakeBrandStore(profile={"brand_name": "Acme"})
    compose_blog(
        make_request(), settings, search=FakeSearch(),
        generation=FakeGeneration(reply=GOOD_REPLY), brand_store=store,
    )
    assert store.user_ids == []


def test_tone_urls_fetched(settings):
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, text="<main><p>Our house style.</p></main>")
    )
    generation = FakeGeneration(reply=GOOD_REPLY)

    compose_blog(
        make_request(tone_sample_urls=["https://me.test/post"]),
        settings,
        search=FakeSearch(),
        generation=generation,
        page_transport=transport,
    )

    assert "Our house style." in generation.calls[0]["messages"][0]["content"]


def test_identical_input_gives_identical_output(settings):
    generation = FakeGeneration(reply="no json here")
    first = compose_blog(make_request(), settings, search=FakeSearch(), generation=generation)
    second = compose_blog(make_request(), settings, search=FakeSearch(), generation=generation)
    assert json.dumps(first) == json.dumps(second)

import pytest

from blogwriter.config import Settings


@pytest.fixture
def settings():
    return Settings(
        perplexity_api_key="pplx-test",
        anthropic_api_key="sk-ant-test",
    )


@pytest.fixture
def bare_settings():
    """Settings with no credentials at all."""
    return Settings()

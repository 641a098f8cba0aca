import logging
from typing import Optional

from blogwriter.config import Settings
from blogwriter.errors import ValidationError
from blogwriter.schemas.models import ChatRequest, ChatTurn
from blogwriter.vendors import GenerationClient

logger = logging.getLogger(__name__)

CHAT_TEMPERATURE = 0.7


def build_system_prompt(
    blog_title: Optional[str],
    keywords: Optional[list[str]],
    blog_content: Optional[str],
) -> str:
    keywords_text = ", ".join(k for k in (keywords or []) if k) or "none specified"
    return (
        "You are an expert blog editor and SEO specialist. Help the user edit and "
        "improve their blog content.\n\n"
        "Current Blog Context:\n"
        f"- Title: {blog_title or 'Untitled'}\n"
        f"- Target Keywords: {keywords_text}\n"
        f"- Content: {blog_content or 'No content yet'}\n\n"
        "Your role:\n"
        "- Provide specific, actionable suggestions for improvements\n"
        "- Help with SEO optimization and keyword integration\n"
        "- Improve readability, structure, and engagement\n"
        "- Suggest better headlines, transitions, and conclusions\n"
        "- When suggesting edits, show the improved version using markdown code blocks\n"
        "- Be concise but helpful\n\n"
        "Remember: The blog is written in Markdown format. When suggesting text "
        "changes, provide the complete improved section."
    )


def build_messages(history: list[ChatTurn], message: str) -> list[dict[str, str]]:
    """Conversation in Messages API shape: starts with user, roles alternate."""
    messages: list[dict[str, str]] = []
    for turn in [*history, ChatTurn(role="user", content=message)]:
        content = turn.content.strip()
        if not content:
            continue
        if not messages and turn.role == "assistant":
            continue
        if messages and messages[-1]["role"] == turn.role:
            messages[-1]["content"] += "\n\n" + content
        else:
            messages.append({"role": turn.role, "content": content})
    return messages


def chat_edit(
    request: ChatRequest,
    settings: Settings,
    generation: Optional[GenerationClient] = None,
) -> str:
    if not (request.message or "").strip():
        raise ValidationError("Message is required")

    api_key = settings.require("ANTHROPIC_API_KEY")
    if generation is None:
        generation = GenerationClient(api_key, settings.generation_model, settings.request_timeout)

    logger.info(
        "Processing blog edit request (%d prior turns)", len(request.conversation_history)
    )
    return generation.complete(
        build_messages(request.conversation_history, request.message),
        system=build_system_prompt(request.blog_title, request.keywords, request.blog_content),
        temperature=CHAT_TEMPERATURE,
        max_tokens=4096,
    )

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AnalysisRequest(CamelModel):
    website_url: str = Field("", alias="websiteUrl")


class AnalysisResult(CamelModel):
    brand_name: str = Field(alias="brandName")
    business_description: str = Field(alias="businessDescription")
    target_audience: str = Field(alias="targetAudience")
    benefits: str
    industry: str
    tone_of_voice: str = Field(alias="toneOfVoice")


class GenerationRequest(CamelModel):
    keywords: list[str] = []
    competitor_urls: list[str] = Field([], alias="competitorUrls")
    tone_sample: Optional[str] = Field(None, alias="toneSample")
    tone_sample_urls: list[str] = Field([], alias="toneSampleUrls")
    user_id: Optional[str] = Field(None, alias="userId")


class GenerationResult(CamelModel):
    title: str
    content: str


class ChatTurn(CamelModel):
    role: Literal["user", "assistant"]
    content: str = ""


class ChatRequest(CamelModel):
    message: str = ""
    blog_content: Optional[str] = Field(None, alias="blogContent")
    blog_title: Optional[str] = Field(None, alias="blogTitle")
    keywords: Optional[list[str]] = None
    conversation_history: list[ChatTurn] = Field([], alias="conversationHistory")


class ChatReply(CamelModel):
    reply: str


class ErrorResponse(CamelModel):
    error: str

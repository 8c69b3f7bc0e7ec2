from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, BaseModel, Field, model_validator

from ..recommendations.models import FilterSet, RecommendedItem


class ChatRole(str, Enum):
    user = "user"
    assistant = "assistant"


class ChatTurn(BaseModel):
    role: ChatRole
    content: str


class ChatRecommendationContext(BaseModel):
    """Inline copy of a recommendation, for results not held in history."""

    summary: str | None = None
    filters: FilterSet = Field(default_factory=FilterSet)
    recommendations: list[RecommendedItem] = Field(default_factory=list)


class ChatRequest(BaseModel):
    recommendation_id: int | None = Field(
        default=None, validation_alias=AliasChoices("recommendation_id", "recommendationId")
    )
    recommendation: ChatRecommendationContext | None = Field(
        default=None, validation_alias=AliasChoices("recommendation", "recommendationData")
    )
    message: str = Field(..., max_length=2000)
    history: list[ChatTurn] = Field(
        default_factory=list, validation_alias=AliasChoices("history", "chatHistory")
    )

    @model_validator(mode="after")
    def _check(self) -> "ChatRequest":
        if not self.message.strip():
            raise ValueError("message is required")
        if self.recommendation_id is None and self.recommendation is None:
            raise ValueError("recommendation_id or recommendation is required")
        return self


class ChatResponse(BaseModel):
    reply: str
    message_id: str

from __future__ import annotations

import json
import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    computed_field,
    field_validator,
)

_FEE_RANGE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:-\s*(\d+(?:\.\d+)?)|\+)\s*$")


def parse_fee_range(value: str) -> tuple[float, float | None] | None:
    """Return ``(low, high)`` for ``"0-100"`` / ``(low, None)`` for ``"550+"``."""
    match = _FEE_RANGE_RE.match(value)
    if not match:
        return None
    low = float(match.group(1))
    high = float(match.group(2)) if match.group(2) is not None else None
    if high is not None and high < low:
        return None
    return low, high


class FilterSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    networks: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("networks", "cardTypes", "network"),
        description='Allowed card networks, e.g. ["VISA"]',
    )
    reward_types: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("reward_types", "rewardTypes"),
    )
    fee_range: str | None = Field(
        default=None,
        validation_alias=AliasChoices("fee_range", "annualFeeRange", "feeRange"),
        description='Annual fee range, e.g. "0-100" or "550+"',
    )
    additional_requirements: str | None = Field(
        default=None,
        validation_alias=AliasChoices("additional_requirements", "additionalRequirements"),
        max_length=2000,
    )

    @field_validator("networks", "reward_types", mode="before")
    @classmethod
    def _clean_labels(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if isinstance(value, list):
            return [v.strip() for v in value if isinstance(v, str) and v.strip()]
        return value

    @field_validator("fee_range", "additional_requirements", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("fee_range")
    @classmethod
    def _check_fee_range(cls, value: str | None) -> str | None:
        if value is not None and parse_fee_range(value) is None:
            raise ValueError('fee_range must look like "0-100" or "550+"')
        return value


class RecommendedItem(BaseModel):
    rank: int = 0
    name: str = Field(..., min_length=1)
    issuer: str = Field(default="", validation_alias=AliasChoices("issuer", "bankName", "bank_name"))
    image_url: str = Field(default="", validation_alias=AliasChoices("image_url", "image"))
    fee: str = ""
    network: str = Field(default="", validation_alias=AliasChoices("network", "cardType", "card_type"))
    sign_up_bonus: str | None = Field(
        default=None, validation_alias=AliasChoices("sign_up_bonus", "signUpBonus")
    )
    rewards: str = ""
    description: str = ""
    pros: list[str] = Field(default_factory=list)
    apply_link: str = Field(default="", validation_alias=AliasChoices("apply_link", "applyLink"))

    @field_validator(
        "name", "issuer", "image_url", "fee", "network", "sign_up_bonus",
        "rewards", "description", "apply_link",
        mode="before",
    )
    @classmethod
    def _scalar_to_str(cls, value: Any, info: ValidationInfo) -> Any:
        # detail fields are opaque text; only the name is checked
        if isinstance(value, (bool, int, float)):
            return str(value)
        if isinstance(value, list):
            return ", ".join(str(v) for v in value if v is not None)
        if isinstance(value, dict):
            return json.dumps(value)
        if value is None:
            # models often emit null for unknown details
            return None if info.field_name in ("name", "sign_up_bonus") else ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("pros", mode="before")
    @classmethod
    def _pros_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [str(v) for v in value if v is not None]
        return value


class ResponseFormat(str, Enum):
    primary = "primary"
    legacy = "legacy"


class DocumentSummary(BaseModel):
    file_id: str
    original_name: str
    size: int
    extraction_success: bool
    extraction_method: str | None = None
    extracted_preview: str | None = None
    extraction_error: str | None = None


class RecommendationResult(BaseModel):
    id: int
    filters: FilterSet
    document: DocumentSummary | None = None
    summary: str | None = None
    format: ResponseFormat = ResponseFormat.primary
    recommendations: list[RecommendedItem]
    generated_at: datetime

    @computed_field
    @property
    def count(self) -> int:
        return len(self.recommendations)


# ── Request / response bodies ───────────────────────────────────────────


class GenerateRequest(BaseModel):
    filters: FilterSet = Field(default_factory=FilterSet)
    file_id: str | None = Field(
        default=None, validation_alias=AliasChoices("file_id", "fileId")
    )


class GenerateResponse(BaseModel):
    job_id: str
    status: str


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    data: RecommendationResult | None = None
    error: str | None = None


class HistoryResponse(BaseModel):
    history: list[RecommendationResult]
    count: int
    total: int

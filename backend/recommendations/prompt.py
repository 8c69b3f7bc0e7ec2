from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from .models import FilterSet, parse_fee_range

logger = logging.getLogger(__name__)

RECOMMENDATION_COUNT = 3
UNAVAILABLE = "Information not available"

ROLE_PREAMBLE = (
    "You are a credit card recommendation expert. Based on the user's "
    "preferences and spending patterns, recommend suitable credit cards."
)

DOCUMENT_SUMMARY_INSTRUCTION = (
    "Based on the uploaded statement, analyze the spending patterns and give a "
    "consumer spending analysis (e.g. 'Your spending is primarily in dining (40%), "
    "travel (30%), and groceries (20%).'). Then explain WHY these specific "
    f"{RECOMMENDATION_COUNT} cards are recommended and how they match the spending "
    "habits and the filter requirements."
)

PREFERENCE_SUMMARY_INSTRUCTION = (
    f"No statement was uploaded. Explain WHY these specific {RECOMMENDATION_COUNT} "
    "cards are recommended based on the user's filter preferences, and describe "
    "what type of consumer would benefit most from them."
)

OUTPUT_CONTRACT = """\
OUTPUT FORMAT:
Respond with ONE valid JSON object and nothing else - no prose before or after it,
no markdown code fences. The object has exactly two keys:
{{
  "summary": "{summary_instruction}",
  "cards": [
    {{
      "name": "Card name as it appears in the retrieved context",
      "issuer": "Issuing bank as it appears in the retrieved context",
      "image_url": "EXACT 'Official Image URL' from the retrieved context, or '{unavailable}'",
      "fee": "Annual fee, e.g. '$95'",
      "network": "VISA / Mastercard / American Express / Discover",
      "sign_up_bonus": "Current sign-up bonus copied from the retrieved context, or '{unavailable}'",
      "rewards": "Earning rates per dollar by category, e.g. '3x points on dining, 1x on everything else'",
      "description": "Why this card suits the user and how it meets the filters",
      "pros": ["Benefit 1", "Benefit 2", "Benefit 3"],
      "apply_link": "Application URL from the retrieved context, on the issuer's own domain"
    }}
  ]
}}
The "cards" array must contain exactly {count} cards, ranked best match first."""

PROVENANCE_RULES = f"""\
SOURCE DATA RULES:
- image_url: copy the EXACT "Official Image URL" given for the card in the retrieved
  context. Never modify, shorten or invent an image URL. If the context has none,
  use "{UNAVAILABLE}".
- sign_up_bonus: use ONLY bonus offers that appear in the retrieved context.
  Never guess an amount. If the context has none, use "{UNAVAILABLE}". When several
  amounts appear, use the current (highest) one and ignore crossed-out offers.
- apply_link: use the application or source URL from the context when present.
  Never use placeholder URLs such as https://example.com.
- rewards: always give concrete earning rates ("2% cash back", "3x points on dining")."""


def _coerce_filters(filters: FilterSet | dict[str, Any] | None) -> FilterSet:
    """Best-effort FilterSet; malformed fields become "no constraint"."""
    if isinstance(filters, FilterSet):
        return filters
    if not isinstance(filters, dict):
        return FilterSet()

    try:
        return FilterSet.model_validate(filters)
    except ValidationError:
        pass

    clean: dict[str, Any] = {}
    for key, value in filters.items():
        try:
            FilterSet.model_validate({key: value})
        except ValidationError:
            logger.debug("Ignoring malformed filter %r=%r", key, value)
            continue
        clean[key] = value

    try:
        return FilterSet.model_validate(clean)
    except ValidationError:
        return FilterSet()


def _describe_fee_range(fee_range: str) -> str:
    low, high = parse_fee_range(fee_range) or (0.0, None)
    if high is None:
        return f"${low:g} or more"
    return f"${low:g}-${high:g}"


def _filter_lines(filters: FilterSet) -> list[str]:
    lines = ["USER PREFERENCES AND FILTERS:"]

    if filters.networks:
        lines.append(
            f"- Required Card Network: {', '.join(filters.networks)} "
            "*** MANDATORY - ONLY recommend cards from this network ***"
        )
    else:
        lines.append("- Card network: any network is acceptable")

    if filters.fee_range:
        lines.append(
            f"- Annual Fee Range: {_describe_fee_range(filters.fee_range)} "
            "*** MANDATORY - every card MUST fall within this fee range ***"
        )
    else:
        lines.append("- Annual fee: no fee preference")

    if filters.reward_types:
        lines.append(
            f"- Desired Reward Types: {', '.join(filters.reward_types)} "
            "*** PREFERRED - strongly prioritize cards with these reward types ***"
        )
    else:
        lines.append("- Reward types: no reward type preference")

    if filters.additional_requirements:
        lines.append(
            f"- Additional Requirements: {filters.additional_requirements} "
            "*** PREFERRED - weigh these heavily ***"
        )
    return lines


def _compliance_rules(filters: FilterSet) -> list[str]:
    rules: list[str] = []
    if filters.networks:
        rules.append(
            f"The card network filter ({', '.join(filters.networks)}) is NON-NEGOTIABLE. "
            "Recommending a card from any other network is strictly forbidden. "
            "Cards may come from any issuing bank on that network."
        )
    if filters.fee_range:
        rules.append(
            "The annual fee range is NON-NEGOTIABLE. Double-check each card's fee "
            "and exclude any card outside the range."
        )
    if filters.reward_types:
        rules.append(
            "Reward types are strongly weighted but not exclusionary: prefer matching "
            "cards, and only fill remaining slots with the closest alternatives."
        )
    if filters.additional_requirements:
        rules.append(
            "Additional requirements are strongly weighted but not exclusionary."
        )
    if not rules:
        return []
    numbered = [f"{i}. {rule}" for i, rule in enumerate(rules, start=1)]
    return ["FILTER COMPLIANCE RULES:", *numbered]


def _document_lines(document_text: str | None) -> list[str]:
    if not document_text:
        return [
            "No spending data provided. Base the recommendations on the filters "
            "and preferences above."
        ]
    return [
        "USER SPENDING PATTERNS (from uploaded statement):",
        document_text,
        "",
        "The statement shows the user's SPENDING HABITS. Analyze only spending "
        "categories, amounts and patterns. Do NOT consider which bank issued the "
        "statement; cards from ANY issuer are allowed if they match the filters.",
    ]


def build_recommendation_prompt(
    filters: FilterSet | dict[str, Any] | None,
    document_text: str | None = None,
) -> str:
    """
    Build the generation prompt for a filter set and optional statement text.

    Pure and deterministic. Missing or malformed filters are treated as no
    constraint; this function does not raise on bad input.
    """
    fs = _coerce_filters(filters)
    has_document = bool(document_text and document_text.strip())
    text = document_text.strip() if has_document else None

    summary_instruction = (
        DOCUMENT_SUMMARY_INSTRUCTION if has_document else PREFERENCE_SUMMARY_INSTRUCTION
    )

    sections = [
        ROLE_PREAMBLE,
        "\n".join(_filter_lines(fs)),
        "\n".join(_compliance_rules(fs)),
        "\n".join(_document_lines(text)),
        (
            f"TASK:\nRecommend exactly {RECOMMENDATION_COUNT} credit cards ranked by "
            "how well they match "
            + ("the spending patterns and the filters." if has_document else "the filters and preferences.")
        ),
        PROVENANCE_RULES,
        OUTPUT_CONTRACT.format(
            summary_instruction=summary_instruction.replace('"', "'"),
            unavailable=UNAVAILABLE,
            count=RECOMMENDATION_COUNT,
        ),
    ]
    return "\n\n".join(s for s in sections if s)

from __future__ import annotations

import json

from ..recommendations.models import RecommendationResult, RecommendedItem
from .models import ChatRecommendationContext, ChatRole, ChatTurn

MAX_TRANSCRIPT_TURNS = 20

FALLBACK_REPLY = "I apologize, but I could not generate a response. Please try again."

CHAT_PREAMBLE = (
    "You are a helpful credit card advisor assistant. You are having a "
    "conversation with a user about their credit card recommendations."
)

CHAT_INSTRUCTIONS = """\
INSTRUCTIONS:
1. Answer the user's question using the recommended cards and the conversation above.
2. Be helpful, friendly and concise.
3. When asked about a specific card, use the card details provided above.
4. You may add general credit card knowledge, but the card details above take priority.
5. If you do not know something specific about a card, say so and suggest checking the issuer's website.
6. Use bullet points or numbered lists when they make the answer clearer.
7. Do NOT end with generic closing lines such as "If you have any questions" or "Feel free to ask" - this is an ongoing conversation.

Provide a direct answer to the user's question without closing remarks:"""


def _render_card(card: RecommendedItem) -> str:
    pros = ", ".join(card.pros) if card.pros else "N/A"
    return (
        f"Card: {card.name} by {card.issuer or 'N/A'}\n"
        f"  - Card Type: {card.network or 'N/A'}\n"
        f"  - Annual Fee: {card.fee or 'N/A'}\n"
        f"  - Sign-up Bonus: {card.sign_up_bonus or 'N/A'}\n"
        f"  - Rewards: {card.rewards or 'N/A'}\n"
        f"  - Description: {card.description or 'N/A'}\n"
        f"  - Pros: {pros}"
    )


def _render_transcript(transcript: list[ChatTurn]) -> str:
    if not transcript:
        return "No previous conversation"
    lines = []
    for turn in transcript[-MAX_TRANSCRIPT_TURNS:]:
        speaker = "User" if turn.role is ChatRole.user else "Assistant"
        lines.append(f"{speaker}: {turn.content}")
    return "\n".join(lines)


def build_chat_prompt(
    recommendation: RecommendationResult | ChatRecommendationContext,
    transcript: list[ChatTurn],
    message: str,
) -> str:
    """Grounding block for a follow-up question about a prior recommendation."""
    filters = recommendation.filters.model_dump(exclude_none=True)
    cards = "\n\n".join(_render_card(c) for c in recommendation.recommendations)

    return "\n\n".join([
        CHAT_PREAMBLE,
        "RECOMMENDED CARDS CONTEXT:\n"
        f"Summary: {recommendation.summary or 'N/A'}\n"
        f"User's Filter Preferences: {json.dumps(filters, indent=2)}",
        cards or "No cards available",
        f"PREVIOUS CONVERSATION:\n{_render_transcript(transcript)}",
        f"USER'S CURRENT QUESTION:\n{message.strip()}",
        CHAT_INSTRUCTIONS,
    ])

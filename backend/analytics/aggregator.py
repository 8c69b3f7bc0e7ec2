from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    generations = [e for e in events if e["type"] == "generation"]
    total = len(generations)
    completed = sum(1 for g in generations if g.get("status") == "completed")
    failed = total - completed

    # Average pipeline duration
    times = [g["duration_ms"] for g in generations if "duration_ms" in g]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Why jobs failed
    failure_counter: Counter[str] = Counter()
    for g in generations:
        if g.get("status") == "failed":
            failure_counter[g.get("failure_kind") or "unknown"] += 1

    # Statement extraction
    with_document = [g for g in generations if g.get("has_document")]
    extraction_failures = sum(1 for g in with_document if not g.get("extraction_success"))
    ocr_used = sum(1 for g in with_document if g.get("extraction_method") == "ocr")

    # Most requested filters
    network_counter: Counter[str] = Counter()
    reward_counter: Counter[str] = Counter()
    for g in generations:
        for n in g.get("networks", []) or []:
            network_counter[n] += 1
        for r in g.get("reward_types", []) or []:
            reward_counter[r] += 1

    legacy = sum(1 for g in generations if g.get("response_format") == "legacy")
    chats = [e for e in events if e["type"] == "chat"]

    return {
        "total_jobs": total,
        "completed": completed,
        "failed": failed,
        "success_rate": round(completed / total * 100, 1) if total else 0.0,
        "avg_duration_ms": avg_time,
        "failure_reasons": dict(failure_counter),
        "documents": {
            "total": len(with_document),
            "extraction_failures": extraction_failures,
            "ocr_used": ocr_used,
        },
        "legacy_format_replies": legacy,
        "chat_messages": len(chats),
        "chat_failures": sum(1 for c in chats if c.get("status") == "failed"),
        "top_networks": [{"name": n, "count": c} for n, c in network_counter.most_common(10)],
        "top_reward_types": [{"name": n, "count": c} for n, c in reward_counter.most_common(10)],
    }

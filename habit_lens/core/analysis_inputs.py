"""Prompt assembly for data-grounded analysis.

Output is deterministic: identical template, goal, entries and history give
byte-identical message lists.
"""

import json
from typing import Any

from habit_lens.core.errors import NoData
from habit_lens.core.field_codec import render_values
from habit_lens.core.schemas_analysis import ChatMessage
from habit_lens.core.schemas_entries import Entry
from habit_lens.core.schemas_templates import Template

# ruff: noqa: E501
SYSTEM_PROMPT = (
    "You are a data analysis assistant integrated within a personal tracking application. "
    "Users input diverse data through customized tracking templates, covering activities such as "
    "sleep patterns, exercise, diet, mood, and social interactions. Your primary function is to "
    "analyze this logged data, identify meaningful patterns, correlations, and trends, and provide "
    "insightful, actionable feedback and tailored recommendations. Always interpret user data "
    "thoughtfully, clearly explaining your insights and suggestions in an empathetic, encouraging, "
    "and supportive manner. When providing recommendations, consider the user's historical data "
    "and context to ensure relevance and personalization."
)

GOAL_PROMPT = (
    " The user has set the following goal for this template: \"{goal}\". "
    "Relate your analysis and recommendations to progress toward this goal."
)


def build_system_prompt(template: Template) -> str:
    """Role instruction, goal-aware when the template has a goal."""
    goal = (template.goal or "").strip()
    if goal:
        return SYSTEM_PROMPT + GOAL_PROMPT.format(goal=goal)
    return SYSTEM_PROMPT


def format_entries(template: Template, entries: list[Entry]) -> list[dict[str, Any]]:
    """
    Transform entries into ``{"date", "values": [{"field", "value"}]}`` records.

    Values follow the template's field order. Ratings become labels; ids that
    match no field are skipped. A stored value that can no longer be rendered
    (e.g. after a field changed type) is passed through as stored.
    """
    formatted = []
    for entry in entries:
        values = [
            {"field": item["field"], "value": item["value"]}
            for item in render_values(template.fields, entry.values)
        ]
        formatted.append({"date": entry.date.isoformat(), "values": values})
    return formatted


def build_context_block(template: Template, entries: list[Entry]) -> str:
    """
    Build the data context block.

    ``entries`` must already be sorted by date descending, so the earliest
    date is the last element and the latest date is the first.
    """
    if not entries:
        raise NoData()

    lines = [f"Template: {template.name}"]
    goal = (template.goal or "").strip()
    if goal:
        lines.append(f"Goal: {goal}")
    lines.append(f"Number of entries: {len(entries)}")
    lines.append(f"Date range: {entries[-1].date.isoformat()} to {entries[0].date.isoformat()}")
    lines.append("")
    lines.append("Data:")
    lines.append(json.dumps(format_entries(template, entries), indent=2, ensure_ascii=False))
    return "\n".join(lines)


def build_analysis_messages(
    template: Template,
    entries: list[Entry],
    history: list[ChatMessage],
    query: str,
) -> list[ChatMessage]:
    """
    Assemble the full message list sent to the model.

    Args:
        template: Active template
        entries: Its entries, date descending
        history: Prior conversation, sent in full
        query: The new user question

    Returns:
        [system role, system context, *history, user query]

    Raises:
        NoData: If there are no entries
    """
    context = build_context_block(template, entries)
    return [
        ChatMessage(role="system", content=build_system_prompt(template)),
        ChatMessage(role="system", content=context),
        *history,
        ChatMessage(role="user", content=query),
    ]

"""Plain-text formatting of tips for the terminal."""

from datetime import date
from typing import Optional

from .models import Tip
from .review import days_until


def format_due(tip: Tip, today: date) -> str:
    remaining = days_until(tip, today)
    if remaining is None:
        return ""
    if remaining < 0:
        return f"overdue since {tip.relevance_date}"
    if remaining == 0:
        return "due today"
    if remaining == 1:
        return "due tomorrow"
    return f"due {tip.relevance_date} (in {remaining} days)"


def format_tip_line(tip: Tip, today: date) -> str:
    """One-line summary: id prefix, title, and status markers."""
    markers = []
    if tip.is_processed:
        markers.append("done")
    due = format_due(tip, today)
    if due:
        markers.append(due)
    if tip.urgency_level:
        markers.append(tip.urgency_level)
    if not tip.ai_processed:
        markers.append("unclassified")
    suffix = f"  [{', '.join(markers)}]" if markers else ""
    return f"{tip.id[:8]}  {tip.title or tip.content}{suffix}"


def format_tip(tip: Tip, today: Optional[date] = None) -> str:
    """Multi-line detail view of a tip."""
    today = today or date.today()
    lines = [
        f"{tip.title or 'Untitled'}",
        f"  id:        {tip.id}",
        f"  folder:    {tip.folder}",
    ]
    if tip.content and tip.content != tip.title:
        lines.append(f"  content:   {tip.content}")
    if tip.url:
        lines.append(f"  url:       {tip.url}")
    lines.append(f"  priority:  {tip.priority}   urgency: {tip.urgency_level}")
    due = format_due(tip, today)
    if due:
        event = f" ({tip.relevance_event})" if tip.relevance_event else ""
        lines.append(f"  when:      {due}{event}")
    if tip.tags:
        lines.append(f"  tags:      {', '.join(tip.tags)}")
    if tip.estimated_time or tip.action_required:
        action = "action required" if tip.action_required else "no action needed"
        lines.append(f"  effort:    {tip.estimated_time or 'unknown'}, {action}")
    if tip.summary:
        lines.append("  summary:")
        lines.extend(f"    {line}" for line in tip.summary.splitlines())
    if tip.ai_error:
        lines.append(f"  note:      not classified ({tip.ai_error})")
    return "\n".join(lines)


def format_folder_group(name: str, tips: list[Tip], today: date) -> str:
    active = sum(1 for t in tips if not t.is_processed)
    header = f"{name} ({active} active, {len(tips)} total)"
    return "\n".join([header] + [f"  {format_tip_line(t, today)}" for t in tips])

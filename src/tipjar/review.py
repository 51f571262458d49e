"""Ordering and notifications for reviewing captured tips.

Active tips are ranked by an urgency score built from priority, how close
the relevance date is, and the urgency level. Processed tips are kept but
drop out of the active view.
"""

from collections import defaultdict
from datetime import date
from typing import Optional

from .models import Tip
from .utils import truncate

NOTIFICATION_HORIZON_DAYS = 7

PRIORITY_SCORES = {"High": 100, "Medium": 50}
DEFAULT_PRIORITY_SCORE = 10

# (max days until relevance date, score), checked in order.
DATE_SCORES = ((0, 200), (1, 150), (3, 100), (7, 75), (30, 25))

URGENCY_SCORES = {"Immediate": 200, "This Week": 100, "This Month": 50}


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def days_until(tip: Tip, today: date) -> Optional[int]:
    relevance = _parse_date(tip.relevance_date)
    if relevance is None:
        return None
    return (relevance - today).days


def urgency_score(tip: Tip, today: date) -> int:
    score = PRIORITY_SCORES.get(tip.priority, DEFAULT_PRIORITY_SCORE)

    remaining = days_until(tip, today)
    if remaining is not None:
        for limit, points in DATE_SCORES:
            if remaining <= limit:
                score += points
                break

    score += URGENCY_SCORES.get(tip.urgency_level, 0)
    return score


def active_tips(tips: list[Tip]) -> list[Tip]:
    return [t for t in tips if not t.is_processed]


def processed_tips(tips: list[Tip]) -> list[Tip]:
    return [t for t in tips if t.is_processed]


def sort_for_review(tips: list[Tip], today: date) -> list[Tip]:
    """Active tips by urgency (then relevance date, then newest); processed tips newest first."""

    def active_key(tip: Tip):
        relevance = _parse_date(tip.relevance_date)
        return (
            -urgency_score(tip, today),
            relevance is None,
            relevance or date.max,
        )

    # Stable sorts: newest first as the final tie-breaker.
    newest_first = sorted(tips, key=lambda t: t.created_at, reverse=True)
    active = sorted(active_tips(newest_first), key=active_key)
    done = processed_tips(newest_first)
    return active + done


def group_by_folder(tips: list[Tip], today: date) -> list[tuple[str, list[Tip]]]:
    """Group tips by folder, most urgent folder first."""
    groups: dict[str, list[Tip]] = defaultdict(list)
    for tip in tips:
        groups[tip.folder].append(tip)

    def folder_key(item: tuple[str, list[Tip]]):
        name, members = item
        active = active_tips(members)
        top = max((urgency_score(t, today) for t in active), default=0)
        return (-top, -len(active), name)

    return sorted(
        ((name, sort_for_review(members, today)) for name, members in groups.items()),
        key=folder_key,
    )


def due_notifications(
    tips: list[Tip],
    today: date,
    horizon_days: int = NOTIFICATION_HORIZON_DAYS,
) -> list[dict]:
    """Notifications for unprocessed tips relevant within ``horizon_days``."""
    notifications = []
    for tip in tips:
        if tip.is_processed:
            continue
        remaining = days_until(tip, today)
        if remaining is None or not 0 <= remaining <= horizon_days:
            continue
        label = truncate(tip.content or tip.title or tip.url, 50)
        notifications.append({
            "id": tip.id,
            "type": "urgent_tip",
            "title": "Tip needs attention",
            "message": f'Tip "{label}" is relevant on {tip.relevance_date[:10]}',
            "relevanceDate": tip.relevance_date,
            "daysUntil": remaining,
            "tipId": tip.id,
        })
    notifications.sort(key=lambda n: n["daysUntil"])
    return notifications

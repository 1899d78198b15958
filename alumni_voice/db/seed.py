"""Load demo data from a YAML file."""
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_voice.db.models import AccessCodeRecord, Event, Opportunity, Profile

logger = logging.getLogger(__name__)


def _resolve_time(entry: Dict[str, Any], now: datetime, absolute_key: str, relative_key: str) -> Optional[datetime]:
    """Absolute timestamp if given, else ``now`` plus a relative offset."""
    value = entry.get(absolute_key)
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    if relative_key in entry:
        return now + timedelta(**{relative_key.split("_in_")[1]: entry[relative_key]})
    return None


async def seed_from_yaml(
    db: AsyncSession,
    path: Union[str, Path],
    clock: Callable[[], datetime] = datetime.utcnow,
) -> Dict[str, int]:
    """
    Insert profiles, access codes, opportunities and events from ``path``.

    Profiles already present (by user_id) are skipped, so loading the same
    file twice is harmless. Returns the number of rows added per section.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    now = clock()
    counts = {"profiles": 0, "access_codes": 0, "opportunities": 0, "events": 0}

    for entry in data.get("profiles", []):
        existing = await db.execute(select(Profile).where(Profile.user_id == entry["user_id"]))
        if existing.scalar_one_or_none():
            continue
        db.add(
            Profile(
                user_id=entry["user_id"],
                full_name=entry["full_name"],
                email=entry.get("email"),
                company=entry.get("company"),
                designation=entry.get("designation"),
                bio=entry.get("bio"),
                location=entry.get("location"),
                skills=entry.get("skills", []),
                interests=entry.get("interests", []),
                experience_years=entry.get("experience_years"),
                engagement_score=entry.get("engagement_score", 0),
                is_mentor=entry.get("is_mentor", False),
            )
        )
        counts["profiles"] += 1

    for entry in data.get("access_codes", []):
        db.add(
            AccessCodeRecord(
                access_code=str(entry["code"]),
                user_id=entry["user_id"],
                is_active=entry.get("is_active", True),
                expires_at=_resolve_time(entry, now, "expires_at", "expires_in_days") or now + timedelta(days=1),
            )
        )
        counts["access_codes"] += 1

    for entry in data.get("opportunities", []):
        db.add(
            Opportunity(
                title=entry["title"],
                company=entry["company"],
                type=entry.get("type", "job"),
                location=entry.get("location"),
                salary_range=entry.get("salary_range"),
                employment_type=entry.get("employment_type"),
                is_active=entry.get("is_active", True),
            )
        )
        counts["opportunities"] += 1

    for entry in data.get("events", []):
        event = Event(
            title=entry["title"],
            description=entry.get("description"),
            start_date=_resolve_time(entry, now, "start_date", "starts_in_days") or now,
            location=entry.get("location"),
            is_virtual=entry.get("is_virtual", False),
            event_type=entry.get("event_type", "meetup"),
            created_by=entry.get("created_by"),
        )
        if entry.get("id"):
            event.id = str(entry["id"])
        db.add(event)
        counts["events"] += 1

    await db.commit()
    logger.info(f"[SEED] Loaded {counts} from {path}")
    return counts

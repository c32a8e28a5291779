"""
Derived project metadata: schedule progress, health and risk flags.
"""
from datetime import datetime
from typing import Optional

from .envelope import utcnow

# Fields whose change invalidates previously derived metadata
SCHEDULE_FIELDS = ("start_date", "end_date", "status", "budget")


def project_metadata(
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    status: Optional[str],
    now: Optional[datetime] = None,
) -> dict:
    now = now or utcnow()
    metadata = {
        "progress": 0,
        "health": "HEALTHY",
        "timelineStatus": "ON_TRACK",
        "financialStatus": "WITHIN_BUDGET",
        "risks": [],
    }

    if start_date and end_date:
        total = (end_date - start_date).total_seconds()
        elapsed = (now - start_date).total_seconds()
        if total > 0 and elapsed > 0:
            metadata["progress"] = min(round(elapsed / total * 100), 100)

        if now > end_date and metadata["progress"] < 100:
            metadata["timelineStatus"] = "DELAYED"
            metadata["health"] = "AT_RISK"
            metadata["risks"].append("Project timeline exceeded")
        elif total > 0 and (end_date - now).total_seconds() / total < 0.2 and metadata["progress"] < 80:
            metadata["timelineStatus"] = "AT_RISK"
            metadata["health"] = "NEEDS_ATTENTION"
            metadata["risks"].append("Approaching deadline with low progress")

    if status == "ON_HOLD":
        metadata["health"] = "ON_HOLD"
    elif status == "CANCELLED":
        metadata["health"] = "CANCELLED"

    return metadata


def schedule_changed(fields: dict, existing) -> bool:
    return any(key in fields and fields[key] != getattr(existing, key) for key in SCHEDULE_FIELDS)

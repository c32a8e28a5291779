"""
Aggregation endpoints. Each breakdown is computed in one pass over the rows
the caller is allowed to see.
"""
from collections import OrderedDict
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.models import Project, Task, User
from .envelope import iso, utcnow


def _month(value) -> Optional[str]:
    return value.strftime("%Y-%m") if value else None


def project_stats(db: Session, company_id: int) -> dict:
    rows = (
        db.query(Project.status, Project.health, Project.budget, Project.project_metadata, Project.start_date, Project.end_date)
        .filter(Project.company_id == company_id)
        .all()
    )
    now = utcnow()
    by_status: "OrderedDict[str, dict]" = OrderedDict()
    by_health: "OrderedDict[str, dict]" = OrderedDict()
    budgets = []
    timeline = {"upcomingCount": 0, "activeCount": 0, "overdueCount": 0}

    for status, health, budget, metadata, start, end in rows:
        budget = budget or 0
        budgets.append(budget)
        progress = (metadata or {}).get("progress", 0) or 0

        bucket = by_status.setdefault(status, {"status": status, "count": 0, "totalBudget": 0, "_progress": 0})
        bucket["count"] += 1
        bucket["totalBudget"] += budget
        bucket["_progress"] += progress

        bucket = by_health.setdefault(health, {"health": health, "count": 0, "totalBudget": 0})
        bucket["count"] += 1
        bucket["totalBudget"] += budget

        if start and end:
            if start > now:
                timeline["upcomingCount"] += 1
            if start <= now <= end:
                timeline["activeCount"] += 1
            if end < now:
                timeline["overdueCount"] += 1

    status_stats = []
    for bucket in by_status.values():
        total_progress = bucket.pop("_progress")
        bucket["avgProgress"] = round(total_progress / bucket["count"], 2)
        status_stats.append(bucket)

    budget_summary = {}
    if budgets:
        budget_summary = {
            "totalBudget": sum(budgets),
            "avgBudget": round(sum(budgets) / len(budgets), 2),
            "minBudget": min(budgets),
            "maxBudget": max(budgets),
            "projectCount": len(budgets),
        }

    return {
        "statusStats": status_stats,
        "healthStats": list(by_health.values()),
        "budgetSummary": budget_summary,
        "timelineSummary": timeline,
        "companyId": company_id,
    }


def user_stats(db: Session) -> dict:
    rows = db.query(User.is_active, User.user_metadata, User.created_at).all()
    by_status: "OrderedDict[str, dict]" = OrderedDict()
    by_account: "OrderedDict[str, int]" = OrderedDict()
    by_month: dict = {}

    for is_active, metadata, created_at in rows:
        key = "ACTIVE" if is_active else "INACTIVE"
        bucket = by_status.setdefault(key, {"status": key, "count": 0, "latestUser": None})
        bucket["count"] += 1
        if created_at and (bucket["latestUser"] is None or created_at > bucket["latestUser"]):
            bucket["latestUser"] = created_at

        account = (metadata or {}).get("accountStatus")
        by_account[account] = by_account.get(account, 0) + 1

        month = _month(created_at)
        by_month[month] = by_month.get(month, 0) + 1

    status_stats = [dict(b, latestUser=iso(b["latestUser"])) for b in by_status.values()]
    months = sorted((m for m in by_month if m), reverse=True)[:12]
    return {
        "statusStats": status_stats,
        "activityStats": [{"accountStatus": k, "count": v} for k, v in by_account.items()],
        "timelineStats": [{"month": m, "count": by_month[m]} for m in months],
        "totalUsers": len(rows),
    }


def task_stats(db: Session, company_id: Optional[int] = None, project_id: Optional[int] = None) -> dict:
    filters = []
    if company_id is not None:
        filters.append(Task.company_id == company_id)
    if project_id is not None:
        filters.append(Task.project_id == project_id)

    by_status = db.query(Task.status, func.count(Task.id)).filter(*filters).group_by(Task.status).all()
    by_type = db.query(Task.task_type, func.count(Task.id)).filter(*filters).group_by(Task.task_type).all()

    by_month: dict = {}
    for (created_at,) in db.query(Task.created_at).filter(*filters).all():
        month = _month(created_at)
        by_month[month] = by_month.get(month, 0) + 1

    return {
        "byStatus": [{"status": s, "count": c} for s, c in by_status],
        "byType": [{"taskType": t, "count": c} for t, c in by_type],
        "byMonth": [{"month": m, "count": by_month[m]} for m in sorted(m for m in by_month if m)],
        "totalTasks": sum(c for _, c in by_status),
    }

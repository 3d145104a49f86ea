"""
Social dashboards: employee benefits cost and participation (GRI 401-2) and
stakeholder engagement (GRI 2-29).
"""

from datetime import date


def calculate_benefits(employees, benefits):
    """Cost and participation over active benefits of active employees."""
    active_ids = {e.id for e in employees if e.status == "Ativo"}
    active = [b for b in benefits if b.is_active and b.employee_id in active_ids]

    monthly = sum(b.monthly_cost or 0 for b in active)
    by_type = {}
    for b in active:
        t = by_type.setdefault(b.benefit_type or "Outro", {"monthly_cost": 0.0, "count": 0, "employees": set()})
        t["monthly_cost"] += b.monthly_cost or 0
        t["count"] += 1
        t["employees"].add(b.employee_id)

    participants = {b.employee_id for b in active}
    return {
        "total_monthly_cost": round(monthly, 2),
        "total_annual_cost": round(monthly * 12, 2),
        "active_employees": len(active_ids),
        "participating_employees": len(participants),
        "participation_rate": round(len(participants) / len(active_ids) * 100, 1) if active_ids else 0,
        "average_cost_per_participant": round(monthly / len(participants), 2) if participants else 0,
        "by_type": sorted(
            (
                {
                    "benefit_type": k,
                    "monthly_cost": round(v["monthly_cost"], 2),
                    "benefit_count": v["count"],
                    "employee_count": len(v["employees"]),
                    "percentage_of_cost": round(v["monthly_cost"] / monthly * 100, 1) if monthly else 0,
                }
                for k, v in by_type.items()
            ),
            key=lambda x: -x["monthly_cost"],
        ),
    }


def matrix_quadrant(influence, interest, threshold=3):
    high_influence = (influence or 0) >= threshold
    high_interest = (interest or 0) >= threshold
    if high_influence and high_interest:
        return "manage_closely"
    if high_influence:
        return "keep_satisfied"
    if high_interest:
        return "keep_informed"
    return "monitor"


def calculate_stakeholder_engagement(stakeholders, today=None, stale_after_days=365):
    today = today or date.today()
    scored = [s.engagement_score for s in stakeholders if s.engagement_score is not None]

    categories = {}
    quadrants = {"manage_closely": [], "keep_satisfied": [], "keep_informed": [], "monitor": []}
    not_engaged = 0
    for s in stakeholders:
        cat = categories.setdefault(s.category or "Outros", {"scores": [], "count": 0})
        cat["count"] += 1
        if s.engagement_score is not None:
            cat["scores"].append(s.engagement_score)
        quadrants[matrix_quadrant(s.influence_level, s.interest_level)].append(
            {"id": s.id, "name": s.name}
        )
        if s.last_engagement_date is None or (today - s.last_engagement_date).days > stale_after_days:
            not_engaged += 1

    return {
        "total_stakeholders": len(stakeholders),
        "average_engagement_score": round(sum(scored) / len(scored), 1) if scored else None,
        "by_category": sorted(
            (
                {
                    "category": k,
                    "stakeholder_count": v["count"],
                    "average_engagement_score": (
                        round(sum(v["scores"]) / len(v["scores"]), 1) if v["scores"] else None
                    ),
                }
                for k, v in categories.items()
            ),
            key=lambda x: x["category"],
        ),
        "matrix": quadrants,
        "not_engaged_recently": not_engaged,
    }

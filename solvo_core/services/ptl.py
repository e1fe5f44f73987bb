"""Potential Turnover Likelihood (PTL) scoring.

The risk score, level and factors are computed locally and always returned.
The narrative (analysis and mitigation plan) comes from the AI endpoint
afterwards; a failure there only blanks the narrative.
"""
import logging
from datetime import date, datetime
from uuid import uuid4
from typing import List, Optional, Sequence, Union

from solvo_core.schemas.client import Client, ClientStatus
from solvo_core.schemas.ptl import CoachingPlan, PtlAssessmentResponse, PtlFactor, PtlReport
from solvo_core.schemas.task import Task, TaskStatus
from solvo_core.schemas.team import ActionItem, CoachingSession, TeamMember
from solvo_core.services.ai_client import AIClient, AINotConfiguredError, AIRequestError

logger = logging.getLogger(__name__)

BASE_RISK = 10
AVG_DAYS_PER_MONTH = 30.44
RESIGNED = "Resigned"


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    except ValueError:
        return None


def tenure_months(hire_date: Optional[str], today: date) -> float:
    """Months employed; 0 when the hire date is missing or unreadable."""
    hired = parse_iso_date(hire_date)
    if hired is None:
        return 0.0
    return (today - hired).days / AVG_DAYS_PER_MONTH


def leaves_this_year(member: TeamMember, leave_type: str, today: date) -> int:
    count = 0
    for entry in member.leave_log:
        taken = parse_iso_date(entry.date)
        if taken is not None and taken.year == today.year and entry.type == leave_type:
            count += 1
    return count


def _leave_impact(count: int) -> str:
    if count < 3:
        return "Positive"
    return "Neutral" if count <= 5 else "Negative"


def extract_ptl_factors(
    member: TeamMember, tasks: Sequence[Task], clients: Sequence[Client], today: date
) -> List[PtlFactor]:
    overdue = sum(1 for t in tasks if t.assigned_to == member.id and t.status == TaskStatus.OVERDUE)
    critical = sum(
        1 for c in clients
        if member.id in c.assigned_team_members and c.status == ClientStatus.CRITICAL
    )
    months = tenure_months(member.hire_date, today)
    medical = leaves_this_year(member, "Medical", today)
    permissions = leaves_this_year(member, "Permission", today)
    resigned = "resign" in member.home_office.notes.lower()

    score = member.performance_score
    if score >= 80:
        performance_impact = "Positive"
    elif score >= 60:
        performance_impact = "Neutral"
    else:
        performance_impact = "Negative"

    trending_up = member.performance_score >= member.previous_performance_score

    if months < 6:
        tenure_impact = "Negative"
    elif months < 18:
        tenure_impact = "Neutral"
    else:
        tenure_impact = "Positive"

    if overdue == 0:
        workload_impact = "Positive"
    elif overdue <= 2:
        workload_impact = "Neutral"
    else:
        workload_impact = "Negative"

    return [
        PtlFactor(name="Performance", value=score, impact=performance_impact,
                  description="Current overall performance score."),
        PtlFactor(name="Trend", value="Stable/Up" if trending_up else "Down",
                  impact="Positive" if trending_up else "Negative",
                  description="Recent performance score trend."),
        PtlFactor(name="Tenure", value=f"{months:.1f} mos" if months > 0 else "N/A", impact=tenure_impact,
                  description="Length of time with the company."),
        PtlFactor(name="Workload", value=overdue, impact=workload_impact,
                  description="Number of overdue tasks."),
        PtlFactor(name="Client Health", value=critical, impact="Positive" if critical == 0 else "Negative",
                  description="Assigned to critical-status clients."),
        PtlFactor(name="Medical Leaves (YTD)", value=medical, impact=_leave_impact(medical),
                  description="Total medical leaves this year."),
        PtlFactor(name="Permissions (YTD)", value=permissions, impact=_leave_impact(permissions),
                  description="Early outs, emergencies, etc."),
        PtlFactor(name="Status Notes", value=RESIGNED if resigned else "OK",
                  impact="Negative" if resigned else "Positive",
                  description="Keywords in administrative notes."),
    ]


def _as_count(value: Union[int, float, str]) -> Optional[int]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return None


def _penalty(factor: PtlFactor) -> int:
    count = _as_count(factor.value)
    if factor.name == "Status Notes" and factor.value == RESIGNED:
        return 50
    if factor.name == "Trend":
        return 15
    if factor.name == "Client Health" and count is not None and count > 0:
        return 10 * count
    if factor.name == "Medical Leaves (YTD)" and count is not None:
        return 2 * count
    if factor.name == "Permissions (YTD)" and count is not None:
        return count
    return 10


def _relief(factor: PtlFactor) -> int:
    count = _as_count(factor.value)
    if factor.name == "Performance" and count is not None and factor.value > 90:
        return 10
    return 5


def score_ptl_factors(factors: Sequence[PtlFactor]) -> int:
    score = BASE_RISK
    for factor in factors:
        if factor.impact == "Negative":
            score += _penalty(factor)
        elif factor.impact == "Positive":
            score -= _relief(factor)
    return max(0, min(score, 100))


def risk_level_for(score: int) -> str:
    if score >= 75:
        return "Critical"
    if score >= 50:
        return "High"
    if score >= 25:
        return "Medium"
    return "Low"


def compute_ptl(
    member: TeamMember, tasks: Sequence[Task], clients: Sequence[Client], today: Optional[date] = None
) -> PtlReport:
    today = today or date.today()
    factors = extract_ptl_factors(member, tasks, clients, today)
    score = score_ptl_factors(factors)
    return PtlReport(risk_score=score, risk_level=risk_level_for(score), factors=factors, summary="")


async def build_ptl_assessment(
    member: TeamMember,
    tasks: Sequence[Task],
    clients: Sequence[Client],
    ai_client: AIClient,
    today: Optional[date] = None,
) -> PtlAssessmentResponse:
    report = compute_ptl(member, tasks, clients, today)

    try:
        analysis = await ai_client.generate_ptl_analysis(report.risk_score, report.risk_level, report.factors)
    except AINotConfiguredError as e:
        return PtlAssessmentResponse(
            team_member_id=member.id, report=report, narrative_status="not_configured", narrative_error=str(e)
        )
    except AIRequestError as e:
        logger.warning("PTL narrative failed for member=%s: %s", member.id, e)
        return PtlAssessmentResponse(
            team_member_id=member.id, report=report, narrative_status="error", narrative_error=str(e)
        )

    return PtlAssessmentResponse(
        team_member_id=member.id,
        report=report.model_copy(update={"summary": analysis.analysis}),
        analysis=analysis,
        narrative_status="ok",
    )


def coaching_session_from_plan(plan: CoachingPlan, session_date: date) -> CoachingSession:
    """Seed a coaching session with the plan's actions, all open."""
    return CoachingSession(
        id=f"session_{uuid4().hex[:12]}",
        session_date=session_date.isoformat(),
        summary=plan.summary,
        leader_actions=[ActionItem(id=f"la_{i}", text=text) for i, text in enumerate(plan.leader_actions)],
        employee_actions=[ActionItem(id=f"ea_{i}", text=text) for i, text in enumerate(plan.employee_actions)],
    )

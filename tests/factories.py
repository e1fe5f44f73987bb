"""Small builders for domain objects used across the test modules."""

from solvo_core.schemas.client import Client
from solvo_core.schemas.data import AppData
from solvo_core.schemas.kpi import KpiDefinition, KpiGroup, KpiProgress
from solvo_core.schemas.task import Task
from solvo_core.schemas.team import TeamMember


def kpi(kpi_id, name, goal, points, type="number"):
    return KpiDefinition(id=kpi_id, name=name, type=type, goal=goal, points=points)


def group(group_id, *kpis, name="Sales"):
    return KpiGroup(id=group_id, name=name, kpis=list(kpis))


def member(member_id, name=None, group_id=None, **fields):
    return TeamMember(id=member_id, name=name or member_id.title(), kpi_group_id=group_id, **fields)


def progress(member_id, kpi_id, actual):
    return KpiProgress(id=f"kp_{member_id}_{kpi_id}", team_member_id=member_id, kpi_definition_id=kpi_id, actual=actual)


def task(task_id, **fields):
    fields.setdefault("title", task_id)
    return Task(id=task_id, **fields)


def client(client_id, **fields):
    fields.setdefault("name", client_id.title())
    return Client(id=client_id, **fields)


def sales_team():
    """Two members on the example group: Calls (40 goal) and Cancelled Visits (20 goal)."""
    calls = kpi("k_calls", "Calls", 40, 50)
    cancels = kpi("k_cancel", "Cancelled Visits", 20, 50)
    return AppData(
        team_members=[member("ana", "Ana Diaz", "g_sales"), member("ben", "Ben Okafor", "g_sales")],
        kpi_groups=[group("g_sales", calls, cancels)],
        kpi_progress=[
            progress("ana", "k_calls", 20),
            progress("ana", "k_cancel", 10),
            progress("ben", "k_calls", 40),
            progress("ben", "k_cancel", 0),
        ],
    )


class FakeAIClient:
    """Stands in for ``AIClient``; each method returns or raises what the test set."""

    def __init__(self, analysis=None, coaching_plan=None, summary=None, assistant=None, error=None):
        self.analysis = analysis
        self.coaching_plan = coaching_plan
        self.summary = summary
        self.assistant = assistant
        self.error = error
        self.calls = []

    def _result(self, name, value):
        self.calls.append(name)
        if self.error is not None:
            raise self.error
        return value

    async def generate_ptl_analysis(self, risk_score, risk_level, factors):
        return self._result("generate_ptl_analysis", self.analysis)

    async def generate_ptl_coaching_plan(self, report):
        return self._result("generate_ptl_coaching_plan", self.coaching_plan)

    async def generate_performance_summary(self, member, snapshots):
        return self._result("generate_performance_summary", self.summary)

    async def ai_assistant(self, prompt, context, history):
        return self._result("ai_assistant", self.assistant)

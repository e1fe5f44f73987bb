"""Client for the serverless AI text-generation endpoint.

Each command is a JSON POST to ``<AI_API_BASE_URL>/<command>``. Failures
surface as ``AINotConfiguredError`` (no endpoint or key) or
``AIRequestError`` (transport, HTTP, timeout or malformed response), both
carrying a message that can be shown to the user as is.
"""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from solvo_core.config import settings
from solvo_core.schemas.ptl import CoachingPlan, PtlAnalysis, PtlFactor, PtlReport
from solvo_core.schemas.snapshot import WeeklyPerformanceSnapshot
from solvo_core.schemas.team import TeamMember

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class AICommand(str, Enum):
    GENERATE_PTL_ANALYSIS = "generatePtlAnalysis"
    GENERATE_PTL_COACHING_PLAN = "generatePtlCoachingPlan"
    GENERATE_PERFORMANCE_SUMMARY = "generatePerformanceSummary"
    AI_ASSISTANT = "aiAssistant"


class AIError(Exception):
    pass


class AINotConfiguredError(AIError):
    pass


class AIRequestError(AIError):
    pass


class _SummaryPayload(BaseModel):
    summary: str


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        return f"Request failed with status {response.status_code}"
    return str(body.get("error") or body.get("details") or f"Request failed with status {response.status_code}")


def _mentions_api_key(response: httpx.Response) -> bool:
    try:
        body = response.json()
    except ValueError:
        return False
    if not isinstance(body, dict):
        return False
    text = f"{body.get('error', '')} {body.get('details', '')}"
    return "api key" in text.lower()


def ptl_report_payload(report: PtlReport) -> Dict[str, Any]:
    return {
        "riskScore": report.risk_score,
        "riskLevel": report.risk_level,
        "factors": [f.model_dump(mode="json") for f in report.factors],
        "summary": report.summary,
    }


class AIClient:
    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def call(self, command: AICommand, body: Dict[str, Any]) -> Any:
        if not self.is_configured:
            raise AINotConfiguredError("AI features are not configured. Set AI_API_BASE_URL.")

        url = f"{self.base_url.rstrip('/')}/{command.value}"
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning("AI command %s timed out after %ss", command.value, self.timeout)
            raise AIRequestError(f"The AI service did not respond within {self.timeout:g} seconds.") from e
        except httpx.RequestError as e:
            logger.warning("AI command %s request error: %s", command.value, e)
            raise AIRequestError(f"Could not reach the AI service: {e}") from e

        if response.is_error:
            logger.warning("AI command %s failed with HTTP %s", command.value, response.status_code)
            if response.status_code == 500 and _mentions_api_key(response):
                raise AINotConfiguredError("Invalid or missing API key. Please configure it in the backend.")
            raise AIRequestError(_error_message(response))

        try:
            return response.json()
        except ValueError as e:
            raise AIRequestError(f"The AI service returned an invalid response for {command.value}.") from e

    async def _call_model(self, command: AICommand, body: Dict[str, Any], model: Type[M]) -> M:
        payload = await self.call(command, body)
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.warning("AI command %s returned malformed payload: %s", command.value, e)
            raise AIRequestError(f"The AI service returned an invalid response for {command.value}.") from e

    async def generate_ptl_analysis(
        self, risk_score: int, risk_level: str, factors: Sequence[PtlFactor]
    ) -> PtlAnalysis:
        body = {
            "riskScore": risk_score,
            "riskLevel": risk_level,
            "factors": [f.model_dump(mode="json") for f in factors],
        }
        return await self._call_model(AICommand.GENERATE_PTL_ANALYSIS, body, PtlAnalysis)

    async def generate_ptl_coaching_plan(self, report: PtlReport) -> CoachingPlan:
        body = {"ptlReport": ptl_report_payload(report)}
        return await self._call_model(AICommand.GENERATE_PTL_COACHING_PLAN, body, CoachingPlan)

    async def generate_performance_summary(
        self, member: TeamMember, snapshots: Sequence[WeeklyPerformanceSnapshot]
    ) -> str:
        body = {
            "member": member.model_dump(mode="json", exclude={"ptl_report"}),
            "snapshots": [s.model_dump(mode="json") for s in snapshots],
        }
        payload = await self._call_model(AICommand.GENERATE_PERFORMANCE_SUMMARY, body, _SummaryPayload)
        return payload.summary

    async def ai_assistant(self, prompt: str, context: Dict[str, Any], history: List[Dict[str, Any]]) -> Any:
        return await self.call(AICommand.AI_ASSISTANT, {"prompt": prompt, "context": context, "history": history})


def get_ai_client() -> AIClient:
    return AIClient(
        base_url=settings.AI_API_BASE_URL,
        api_key=settings.AI_API_KEY,
        timeout=settings.AI_TIMEOUT_SECONDS,
    )

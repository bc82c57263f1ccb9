"""Automated notice risk assessment.

Wraps an OpenAI-compatible chat completions endpoint. Intake calls
assess_notice(), which is fail-open: any failure (timeout, transport
error, empty or unparseable reply, schema mismatch) yields the fixed
default assessment instead of an exception.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ValidationError

from notice_engine.core.config import settings
from notice_engine.services.errors import ExternalServiceUnavailable

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a copyright compliance expert. Assess the validity and risk level "
    "of this IP takedown notice. Respond with JSON only: "
    '{"is_valid": boolean, "risk_level": "low|medium|high|critical", '
    '"suggested_priority": "low|normal|high|urgent", "notes": "string"}. '
    "Consider completeness of statutory elements, specificity of the infringement "
    "description, whether the claimant appears to be a legitimate rights holder, "
    "risk to the platform if not acted upon, and jurisdiction-specific requirements."
)


@dataclass(frozen=True)
class RiskAssessment:
    is_valid: bool
    risk_level: str
    suggested_priority: str
    notes: str


DEFAULT_ASSESSMENT = RiskAssessment(
    is_valid=True,
    risk_level="medium",
    suggested_priority="normal",
    notes="Automated assessment unavailable",
)


class AssessmentPayload(BaseModel):
    """Expected shape of the model's JSON reply."""

    is_valid: bool
    risk_level: Literal["low", "medium", "high", "critical"]
    suggested_priority: Literal["low", "normal", "high", "urgent"]
    notes: str = ""


class RiskAssessor(ABC):
    """Abstract automated-assessment capability."""

    @abstractmethod
    def assess(self, text: str) -> RiskAssessment:
        """Assess notice text. Raises ExternalServiceUnavailable on failure."""
        pass


class NullRiskAssessor(RiskAssessor):
    """Used when no provider is configured; always unavailable."""

    def assess(self, text: str) -> RiskAssessment:
        raise ExternalServiceUnavailable("Risk assessment provider not configured")


def _strip_code_fences(text: str) -> str:
    content = text.strip()
    if content.startswith("```"):
        lines = content.splitlines()[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        content = "\n".join(lines).strip()
    return content


def parse_assessment(text: str | None) -> RiskAssessment:
    """Parse a model reply into a RiskAssessment.

    Raises ExternalServiceUnavailable when the reply is empty, not JSON, or
    does not match AssessmentPayload.
    """
    if not text or not text.strip():
        raise ExternalServiceUnavailable("Empty assessment response")
    content = _strip_code_fences(text)
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        match = re.search(r"\{[\s\S]*\}", content)
        if not match:
            raise ExternalServiceUnavailable("Assessment response is not JSON")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise ExternalServiceUnavailable("Assessment response is not JSON") from exc
    if not isinstance(data, dict):
        raise ExternalServiceUnavailable("Assessment response is not a JSON object")
    try:
        payload = AssessmentPayload.model_validate(data)
    except ValidationError as exc:
        raise ExternalServiceUnavailable(f"Assessment response failed validation: {exc}") from exc
    return RiskAssessment(
        is_valid=payload.is_valid,
        risk_level=payload.risk_level,
        suggested_priority=payload.suggested_priority,
        notes=payload.notes,
    )


class LLMRiskAssessor(RiskAssessor):
    """OpenAI-compatible chat completions assessor."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout: float = 8.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._transport = transport

    def assess(self, text: str) -> RiskAssessment:
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    f"{self.base_url}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "messages": [
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": text},
                        ],
                        "temperature": 0.0,
                        "response_format": {"type": "json_object"},
                    },
                )
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as exc:
            raise ExternalServiceUnavailable("Risk assessment timed out") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalServiceUnavailable(f"Risk assessment request failed: {exc}") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ExternalServiceUnavailable("Malformed completion response") from exc
        return parse_assessment(content)


def build_assessment_text(payload: dict[str, Any]) -> str:
    """Subset of the notice sent for assessment. Claimant contact details stay out."""
    keys = (
        "infringement_description",
        "copyrighted_work_title",
        "copyrighted_work_description",
        "infringement_type",
        "jurisdiction",
        "claimant_company",
    )
    return json.dumps({k: payload.get(k) for k in keys}, default=str)


def assess_notice(assessor: RiskAssessor, payload: dict[str, Any]) -> RiskAssessment:
    """Fail-open assessment used by intake."""
    try:
        return assessor.assess(build_assessment_text(payload))
    except ExternalServiceUnavailable as exc:
        logger.info("Risk assessment unavailable, using default: %s", exc)
        return DEFAULT_ASSESSMENT
    except Exception:
        # Never let an assessor bug block intake
        logger.exception("Risk assessor raised unexpectedly, using default")
        return DEFAULT_ASSESSMENT


def get_risk_assessor() -> RiskAssessor:
    """Assessor for the configured provider (NullRiskAssessor when unset)."""
    if not settings.RISK_ASSESSMENT_API_KEY:
        return NullRiskAssessor()
    return LLMRiskAssessor(
        api_key=settings.RISK_ASSESSMENT_API_KEY,
        base_url=settings.RISK_ASSESSMENT_BASE_URL,
        model=settings.RISK_ASSESSMENT_MODEL,
        timeout=settings.RISK_ASSESSMENT_TIMEOUT_SECONDS,
    )

"""
Narrative commentary for DQI results.

A narrative collaborator turns a computed score and its metrics into
two or three sentences of investor-facing prose. Collaborators may be
slow or unavailable; the deterministic template below is always
available as the fallback.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from openai import OpenAI

from .aggregation import rating_for_score
from .metric import Metric
from .property import PropertyInput


logger = logging.getLogger(__name__)


class NarrativeUnavailable(Exception):
    """Raised when a narrative collaborator cannot produce commentary."""
    pass


class NarrativeCollaborator(ABC):
    """Source of prose commentary for a scored deal."""

    @abstractmethod
    def summarize(
        self,
        prop: PropertyInput,
        metrics: list[Metric],
        overall_score: int,
    ) -> str:
        """
        Produce commentary for a scored property.

        Raises:
            NarrativeUnavailable: If no commentary can be produced
        """


def template_narrative(prop: PropertyInput, overall_score: int, rating: str) -> str:
    """Deterministic commentary used when no collaborator answers."""
    name = prop.name or "this property"
    return (
        f"Deal Quality Index analysis for {name} scores {overall_score}/100 ({rating}), "
        f"with transparent risk assessment across all seven measured dimensions "
        f"for this {prop.property_type.value.lower()} asset."
    )


class TemplateNarrator(NarrativeCollaborator):
    """Collaborator that always returns the templated commentary."""

    def summarize(
        self,
        prop: PropertyInput,
        metrics: list[Metric],
        overall_score: int,
    ) -> str:
        return template_narrative(prop, overall_score, rating_for_score(overall_score).value)


SYSTEM_PROMPT = """You are a commercial real-estate market analyst. Provide a concise property-specific DQI analysis.

CRITICAL REQUIREMENT: Analyze ONLY the specific property provided. Never reference other properties or make generic market statements.
STYLE: Professional, data-driven, 2-3 sentences maximum.
FOCUS: Deal quality assessment for this specific property, its unique risk factors, and property-specific investment thesis validation."""


def build_prompt(prop: PropertyInput, metrics: list[Metric], overall_score: int) -> str:
    """User prompt describing the scored property."""
    noi = (
        f"${prop.net_operating_income:,.0f}"
        if prop.net_operating_income is not None
        else "not provided"
    )
    breakdown = "\n".join(
        f"- {m.name}: {m.score}/100 ({m.weight}% weight)" for m in metrics
    )
    return (
        f"Analyze this Deal Quality Index score of {overall_score}/100 for THIS SPECIFIC PROPERTY ONLY:\n\n"
        f"Property: {prop.name}\n"
        f"Property Value: ${prop.property_value:,.0f}\n"
        f"Location: {prop.location or 'not provided'}\n"
        f"NOI: {noi}\n"
        f"Type: {prop.property_type.value}\n\n"
        f"DQI Breakdown FOR THIS PROPERTY:\n{breakdown}\n\n"
        "Focus analysis ONLY on this specific property. Provide a property-specific "
        "assessment of deal quality and key risk/opportunity factors for this asset."
    )


class OpenAINarrator(NarrativeCollaborator):
    """
    Narrative collaborator backed by the OpenAI chat completions API.

    The client is created on first use so that constructing the
    narrator never requires credentials. Requests are bounded by
    `timeout` seconds and are not retried by default.
    """

    def __init__(
        self,
        model: str = "gpt-4o",
        api_key: Optional[str] = None,
        max_tokens: int = 200,
        temperature: float = 0.3,
        timeout: float = 5.0,
        max_retries: int = 0,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        return self._client

    def summarize(
        self,
        prop: PropertyInput,
        metrics: list[Metric],
        overall_score: int,
    ) -> str:
        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(prop, metrics, overall_score)},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                timeout=self.timeout,
            )
        except Exception as e:
            raise NarrativeUnavailable(f"OpenAI request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise NarrativeUnavailable("OpenAI returned an empty narrative")
        logger.debug("Narrative received from %s for %s", self.model, prop.property_id)
        return content.strip()

# services/ai_service.py
"""Task breakdown generation through OpenAI, with a fixed local fallback."""
import json
import logging
import re
from typing import List, Optional

from openai import OpenAI

from core.config import settings
from schemas.ai_schema import TaskBreakdown

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You're an expert AI project manager. You break project goals into milestones "
    "and concrete, actionable tasks. Return ONLY valid JSON, no markdown or commentary."
)

USER_PROMPT = """Analyze the following project goal and create a task breakdown: "{goal}"

{roles_text}

Return a JSON object with this structure:
{{"milestones": [{{"title": "...", "description": "...", "tasks": [
  {{"title": "...", "description": "...", "estimate": "X days/hours",
    "suggestedRole": "frontend/backend/design/marketing/general"}}]}}]}}

Create 3-6 milestones with 3-8 tasks each, in a sensible order."""

FALLBACK_BREAKDOWN = {
    "milestones": [
        {
            "title": "Project Planning",
            "description": "Initial project setup and planning phase",
            "tasks": [
                {
                    "title": "Define Requirements",
                    "description": "Gather and document all project requirements",
                    "estimate": "2 days",
                    "suggestedRole": "general",
                },
                {
                    "title": "Create Project Timeline",
                    "description": "Establish milestones and deadlines",
                    "estimate": "1 day",
                    "suggestedRole": "general",
                },
            ],
        },
        {
            "title": "Development",
            "description": "Core development phase",
            "tasks": [
                {
                    "title": "Setup Development Environment",
                    "description": "Configure tools and development environment",
                    "estimate": "1 day",
                    "suggestedRole": "backend",
                },
                {
                    "title": "Implement Core Features",
                    "description": "Build main functionality",
                    "estimate": "5 days",
                    "suggestedRole": "frontend",
                },
            ],
        },
    ]
}


def fallback_breakdown() -> TaskBreakdown:
    return TaskBreakdown.model_validate(FALLBACK_BREAKDOWN)


def parse_breakdown(text: str) -> TaskBreakdown:
    """Pull the first JSON object out of a model reply."""
    match = re.search(r"\{[\s\S]*\}", text or "")
    if not match:
        raise ValueError("No valid JSON found in response")
    breakdown = TaskBreakdown.model_validate(json.loads(match.group(0)))
    if not breakdown.milestones:
        raise ValueError("Breakdown contains no milestones")
    return breakdown


class BreakdownService:
    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None):
        self.model = model or settings.OPENAI_MODEL
        if client is None and settings.OPENAI_API_KEY:
            client = OpenAI(api_key=settings.OPENAI_API_KEY)
        self.client = client

    def generate_breakdown(self, goal: str, roles: Optional[List[str]] = None) -> TaskBreakdown:
        """
        Ask the model for milestones and tasks.

        Any failure (no API key, API error, unparseable reply) degrades to
        FALLBACK_BREAKDOWN; this is the only place errors are swallowed.
        """
        if self.client is None:
            logger.warning("🤖 OPENAI_API_KEY not set; using fallback breakdown.")
            return fallback_breakdown()

        roles_text = (
            f"The team has the following roles: {', '.join(roles)}."
            if roles else "No specific team roles provided."
        )
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": USER_PROMPT.format(goal=goal, roles_text=roles_text)},
                ],
                temperature=0.4,
            )
            return parse_breakdown(response.choices[0].message.content)
        except Exception as exc:
            logger.error("🤖 Breakdown generation failed, using fallback: %s", exc)
            return fallback_breakdown()


def get_breakdown_service() -> BreakdownService:
    """FastAPI dependency; tests override it with a stub client."""
    return BreakdownService()

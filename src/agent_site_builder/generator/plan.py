"""UI plan derivation, straight from an OpenAPI document, or via the LLM."""

import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from agent_site_builder.errors import PlanningError
from agent_site_builder.forms.fields import FieldDescriptor
from agent_site_builder.llm import LlmClient
from agent_site_builder.parser.openapi import JSON_CONTENT_TYPE, find_operation, parse_operations

FORM_COMPONENT = "AgentForm"
DEFAULT_LAYOUT = ["header with agent name and capabilities", "agent input form", "result panel"]
DEFAULT_THEME = "clean light theme"

PLAN_SYSTEM_PROMPT = "You are an AI web architect. You answer with valid JSON only."

PLAN_PROMPT = """Based on the following user prompt and agent metadata, output a structured plan for a web UI that interacts with the agent.

Prompt: "{prompt}"

Agent Metadata:
{agent}

Return a valid JSON object with the following structure:
{{
  "components": ["array of component names"],
  "layout": ["array of layout instructions"],
  "actions": ["array of action descriptions"],
  "user_inputs": ["array of user input fields needed"],
  "theme": "theme description",
  "api_endpoints": ["array of required API endpoints"]
}}

Make sure the response is valid JSON only."""


class UiPlan(BaseModel):
    """What the generated site should contain."""

    model_config = ConfigDict(extra="ignore")

    components: list[str] = []
    layout: list[str] = []
    actions: list[str] = []
    user_inputs: list[str] = []
    theme: str = ""
    api_endpoints: list[str] = []
    content_type: str = JSON_CONTENT_TYPE  # body encoding the agent endpoint expects


def plan_from_openapi(doc: dict, fields: list[FieldDescriptor]) -> UiPlan:
    """A form-centred plan for an agent described by an OpenAPI document."""
    operations = [op for op in parse_operations(doc) if op.method == "POST"]
    invocation = find_operation(doc)
    return UiPlan(
        components=[FORM_COMPONENT],
        layout=list(DEFAULT_LAYOUT),
        actions=[op.summary or f"Invoke {op.method} {op.path}" for op in operations],
        user_inputs=[f.name for f in fields],
        theme=DEFAULT_THEME,
        api_endpoints=[f"{op.method} {op.path}" for op in operations],
        content_type=invocation.content_type if invocation else JSON_CONTENT_TYPE,
    )


def plan_from_json(data: Any) -> UiPlan:
    """Validate an already-structured plan."""
    try:
        return UiPlan.model_validate(data)
    except ValidationError as e:
        raise PlanningError(f"Agent JSON is not a usable UI plan: {e}") from e


class UiPlanner:
    """Asks the LLM for a UI plan when the agent definition is free text."""

    def __init__(self, client: LlmClient | None = None, model: str | None = None):
        self.client = client or LlmClient(model=model)

    def plan(self, prompt: str, agent: Any) -> UiPlan:
        agent_text = agent if isinstance(agent, str) else json.dumps(agent, indent=2)
        response = self.client.call(
            system=PLAN_SYSTEM_PROMPT,
            user=PLAN_PROMPT.format(prompt=prompt, agent=agent_text),
        )
        if not response.strip():
            raise PlanningError("No response from the LLM")
        return plan_from_json(self._extract_json(response))

    def _extract_json(self, response: str) -> Any:
        """Parse the outermost ``{...}`` block of the reply."""
        match = re.search(r"\{.*\}", response, re.DOTALL)
        text = match.group(0) if match else response
        try:
            return json.loads(text)
        except ValueError as e:
            raise PlanningError(f"LLM returned an invalid plan: {e}") from e

"""NeuralSeek client that creates an agent from a natural-language prompt."""

import json
import logging
import re
from typing import Any

import requests
from pydantic import BaseModel

from agent_site_builder.config import Settings
from agent_site_builder.errors import AgentCreationError, AgentCreationTimeout

logger = logging.getLogger(__name__)

CAPABILITIES_PATTERN = re.compile(r"capabilities\s*[:=]\s*\[(.*?)\]", re.IGNORECASE | re.DOTALL)


class AgentData(BaseModel):
    """The agent as returned by the creation API (or supplied by hand)."""

    name: str = ""
    ntl: str = ""
    capabilities: list[str] = []
    raw: Any = None


class NeuralSeekClient:
    """Calls the agent creation endpoint and normalizes its response."""

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    def create_agent(self, prompt: str, context: str | None = None) -> AgentData:
        url = self.settings.require("neuralseek_api_url")
        api_key = self.settings.require("neuralseek_api_key")

        payload = {"prompt": prompt}
        if context:
            payload["context"] = context

        logger.info("Creating agent via %s", url)
        try:
            response = self.session.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json", "x-api-key": api_key},
                timeout=self.settings.neuralseek_timeout,
            )
        except requests.Timeout as e:
            raise AgentCreationTimeout(
                f"Agent creation timed out after {self.settings.neuralseek_timeout:g}s"
            ) from e
        except requests.RequestException as e:
            raise AgentCreationError(f"Agent creation request failed: {e}") from e

        if not response.ok:
            raise AgentCreationError(
                f"Agent creation API returned {response.status_code}: {response.text[:500]}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise AgentCreationError("Agent creation API returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise AgentCreationError("Agent creation API returned an unexpected payload")

        return agent_from_response(data)


def agent_from_response(data: dict) -> AgentData:
    """Pick the agent name, NTL script and capabilities out of an API response."""
    name = data.get("agent_name")
    ntl = data.get("ntl_script")
    if isinstance(ntl, (dict, list)):
        ntl = json.dumps(ntl)
    if not isinstance(ntl, str):
        ntl = ""

    capabilities = data.get("capabilities")
    if isinstance(capabilities, list):
        capabilities = [str(c) for c in capabilities]
    elif ntl:
        capabilities = extract_capabilities_from_ntl(ntl)
    else:
        capabilities = []

    return AgentData(
        name=name if isinstance(name, str) else "",
        ntl=ntl,
        capabilities=capabilities,
        raw=data,
    )


def extract_capabilities_from_ntl(ntl: str) -> list[str]:
    """Read a capability list from an NTL script.

    JSON scripts use their ``capabilities`` array; anything else is scanned
    for a ``capabilities: [...]`` literal.
    """
    try:
        parsed = json.loads(ntl)
    except ValueError:
        match = CAPABILITIES_PATTERN.search(ntl)
        if not match:
            return []
        items = (re.sub(r"['\"\s]", "", item) for item in match.group(1).split(","))
        return [item for item in items if item]

    if isinstance(parsed, dict) and isinstance(parsed.get("capabilities"), list):
        return [str(c) for c in parsed["capabilities"]]
    return []

"""The generate-site pipeline: agent -> UI plan -> code -> deployment -> log."""

import json
import logging
import time
from typing import Any

from pydantic import BaseModel

from agent_site_builder.config import Settings
from agent_site_builder.errors import AgentCreationError, PipelineError
from agent_site_builder.forms.fields import FieldDescriptor
from agent_site_builder.generator.components import DEFAULT_AGENT_ENDPOINT, ComponentWriter, select_components
from agent_site_builder.generator.plan import UiPlan, UiPlanner, plan_from_json, plan_from_openapi
from agent_site_builder.generator.site import SiteGenerator, write_project
from agent_site_builder.integrations.neuralseek import AgentData, NeuralSeekClient
from agent_site_builder.integrations.supabase import ProjectLog, ProjectStore
from agent_site_builder.integrations.vercel import VercelDeployer
from agent_site_builder.llm import LlmClient
from agent_site_builder.parser.openapi import extract_user_inputs, is_openapi

logger = logging.getLogger(__name__)

STEP_AGENT = "NeuralSeek agent creation"
STEP_MANUAL_AGENT = "Manual agent JSON"
STEP_PLAN = "UI plan generation"
STEP_CODEGEN = "Code generation"
STEP_DEPLOY = "Vercel deployment"
STEP_LOG = "Supabase logging"

MANUAL_AGENT_NAME = "ManualAgent"
SUCCESS_MESSAGE = "Site generated and deployed successfully"


class GenerateSiteRequest(BaseModel):
    prompt: str = ""
    agent_json: Any = None
    api_key: str | None = None
    use_neuralseek: bool = True
    context: str | None = None
    deploy: bool = True
    record: bool = True


class GenerateSiteResult(BaseModel):
    success: bool = True
    url: str = ""
    agent: AgentData
    ntl: UiPlan
    fields: list[FieldDescriptor] = []
    component_count: int = 0
    project_path: str = ""
    message: str = SUCCESS_MESSAGE


class SitePipeline:
    """Runs every step of site generation in order, tracking the current step.

    Any failure is re-raised as PipelineError naming the step that failed.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def run(self, request: GenerateSiteRequest) -> GenerateSiteResult:
        start = time.monotonic()
        agent: AgentData | None = None
        step = STEP_AGENT if request.use_neuralseek else STEP_MANUAL_AGENT

        try:
            # Step 1: agent definition
            agent, ntl = self._obtain_agent(request)

            # Step 2: UI plan
            step = STEP_PLAN
            client = LlmClient(
                model=self.settings.llm_model,
                api_key=request.api_key or self.settings.llm_api_key,
            )
            plan, fields = self._resolve_plan(request.prompt, ntl, client)
            logger.info("Plan has %d components and %d fields", len(plan.components), len(fields))

            # Step 3: code generation
            step = STEP_CODEGEN
            writer = ComponentWriter(client=client, endpoint=DEFAULT_AGENT_ENDPOINT)
            files = SiteGenerator(writer=writer).generate(plan, agent=agent, fields=fields)
            project_path = write_project(files, self.settings.output_dir)
            component_count = len(select_components(plan, fields))

            # Step 4: deployment
            url = ""
            if request.deploy:
                step = STEP_DEPLOY
                deployer = VercelDeployer(self.settings.vercel_token, timeout=self.settings.deploy_timeout)
                url = deployer.deploy(project_path)

            # Step 5: project log
            if request.record:
                step = STEP_LOG
                store = ProjectStore(self.settings.supabase_url, self.settings.supabase_key)
                store.insert(
                    ProjectLog(
                        prompt=request.prompt,
                        url=url,
                        ntl=plan.model_dump(),
                        agent_name=agent.name,
                        agent_capabilities=agent.capabilities,
                        neural_seek_response=agent.raw,
                        generation_time=int((time.monotonic() - start) * 1000),
                        component_count=component_count,
                    )
                )
        except Exception as e:
            logger.error("Error during %s: %s", step, e)
            raise PipelineError(step, e, agent=agent, agent_response=agent.raw if agent else None) from e

        return GenerateSiteResult(
            url=url,
            agent=agent,
            ntl=plan,
            fields=fields,
            component_count=component_count,
            project_path=str(project_path),
            message=SUCCESS_MESSAGE if request.deploy else "Site generated",
        )

    def _obtain_agent(self, request: GenerateSiteRequest) -> tuple[AgentData, Any]:
        """The agent plus its definition (NTL text or a decoded JSON object)."""
        if request.use_neuralseek:
            agent = NeuralSeekClient(self.settings).create_agent(request.prompt, request.context)
            if not agent.ntl:
                raise AgentCreationError("NeuralSeek did not return a valid NTL script.")
            return agent, agent.ntl

        if not request.agent_json:
            raise AgentCreationError("No agent_json provided and NeuralSeek is disabled.")
        agent_json = request.agent_json
        name = agent_json.get("name") if isinstance(agent_json, dict) else None
        capabilities = agent_json.get("capabilities") if isinstance(agent_json, dict) else None
        agent = AgentData(
            name=name if isinstance(name, str) and name else MANUAL_AGENT_NAME,
            ntl=json.dumps(agent_json),
            capabilities=[str(c) for c in capabilities] if isinstance(capabilities, list) else [],
        )
        return agent, agent_json

    def _resolve_plan(self, prompt: str, ntl: Any, client: LlmClient) -> tuple[UiPlan, list[FieldDescriptor]]:
        """OpenAPI definitions give a form plan directly, other JSON is the plan, text goes to the LLM."""
        doc = _decode_json(ntl) if isinstance(ntl, str) else ntl
        if is_openapi(doc):
            fields = extract_user_inputs(
                doc,
                max_depth=self.settings.field_depth,
                heuristics=self.settings.field_heuristics,
            )
            return plan_from_openapi(doc, fields), fields
        if isinstance(doc, dict):
            return plan_from_json(doc), []
        return UiPlanner(client=client).plan(prompt, ntl), []


def _decode_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None

"""Failure categories raised by the I/O layers and the pipeline.

Library exceptions (requests timeouts, subprocess deadlines, validation
errors) are translated into these at the boundary where they occur, so
callers branch on the type rather than on message text.
"""


class SiteBuilderError(Exception):
    """Base class for every failure this package raises on purpose."""


class ConfigError(SiteBuilderError):
    """A setting needed by the current stage is missing or invalid."""


class SchemaError(SiteBuilderError):
    """An OpenAPI document cannot be turned into a request schema (e.g. a cyclic $ref)."""


class AgentCreationError(SiteBuilderError):
    """The agent creation API failed or returned something unusable."""


class AgentCreationTimeout(AgentCreationError):
    """The agent creation API did not answer before the deadline."""


class PlanningError(SiteBuilderError):
    """No usable UI plan could be derived."""


class CodegenError(SiteBuilderError):
    """Generated project files failed validation."""


class DeploymentError(SiteBuilderError):
    """Deploying the generated project failed."""


class DeploymentTimeout(DeploymentError):
    """A deployment command exceeded its deadline."""


class ProjectLogError(SiteBuilderError):
    """Reading or writing the project log failed."""


class PipelineError(SiteBuilderError):
    """A pipeline step failed.

    Carries the name of the failing step and whatever agent data had been
    obtained before the failure, so the HTTP layer can report both.
    """

    def __init__(self, step: str, cause: BaseException, agent=None, agent_response=None):
        super().__init__(f"{step} failed: {cause}")
        self.step = step
        self.cause = cause
        self.agent = agent
        self.agent_response = agent_response

"""Vercel deployment by shelling out to npm and the vercel CLI."""

import logging
import re
import subprocess
from pathlib import Path

from agent_site_builder.errors import ConfigError, DeploymentError, DeploymentTimeout

logger = logging.getLogger(__name__)

DEPLOYMENT_URL = re.compile(r"https://[^\s]+\.vercel\.app")
INSTALL_TIMEOUT = 300.0


class VercelDeployer:
    """Installs dependencies and deploys a generated project to production."""

    def __init__(self, token: str | None, timeout: float = 300.0, install_timeout: float = INSTALL_TIMEOUT):
        if not token:
            raise ConfigError("VERCEL_TOKEN environment variable is required")
        self.token = token
        self.timeout = timeout
        self.install_timeout = install_timeout

    def deploy(self, project_path: Path) -> str:
        """Deploy ``project_path`` and return the deployment URL."""
        logger.info("Installing dependencies in %s", project_path)
        self._run(["npm", "install"], cwd=project_path, timeout=self.install_timeout)

        logger.info("Deploying %s to Vercel", project_path)
        result = self._run(
            ["vercel", "deploy", str(project_path), "--prod", "--token", self.token, "--yes"],
            cwd=project_path,
            timeout=self.timeout,
        )
        if result.stderr.strip():
            logger.warning("Vercel deployment warnings: %s", result.stderr.strip())

        match = DEPLOYMENT_URL.search(result.stdout)
        if not match:
            logger.error("Vercel output: %s", result.stdout)
            raise DeploymentError("Could not extract deployment URL from Vercel output")

        url = match.group(0)
        logger.info("Deployed to %s", url)
        return url

    def _run(self, args: list[str], cwd: Path, timeout: float) -> subprocess.CompletedProcess:
        # args may hold the token, so errors only name the executable
        try:
            result = subprocess.run(
                args,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise DeploymentTimeout(f"`{args[0]} {args[1]}` timed out after {timeout:g}s") from e
        except FileNotFoundError as e:
            raise DeploymentError(f"`{args[0]}` executable not found") from e

        if result.returncode != 0:
            output = (result.stderr or result.stdout).strip()
            raise DeploymentError(f"`{args[0]} {args[1]}` exited with {result.returncode}: {output[-500:]}")
        return result

import subprocess
from unittest.mock import patch, MagicMock

import pytest

from agent_site_builder.errors import ConfigError, DeploymentError, DeploymentTimeout
from agent_site_builder.integrations.vercel import VercelDeployer

VERCEL_OUTPUT = """Vercel CLI 33.0.0
Inspect: https://vercel.com/team/ai-agent-site/abc123
Production: https://ai-agent-site-abc123.vercel.app [2s]
"""


def _completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


class TestVercelDeployer:
    def test_requires_token(self):
        with pytest.raises(ConfigError, match="VERCEL_TOKEN"):
            VercelDeployer(None)

    @patch("agent_site_builder.integrations.vercel.subprocess.run")
    def test_deploy_returns_url(self, mock_run, tmp_path):
        mock_run.side_effect = [_completed(), _completed(stdout=VERCEL_OUTPUT)]

        url = VercelDeployer("tok", timeout=60).deploy(tmp_path)

        assert url == "https://ai-agent-site-abc123.vercel.app"
        install_args, deploy_args = (c[0][0] for c in mock_run.call_args_list)
        assert install_args == ["npm", "install"]
        assert deploy_args[:3] == ["vercel", "deploy", str(tmp_path)]
        assert "--prod" in deploy_args
        assert deploy_args[deploy_args.index("--token") + 1] == "tok"
        assert mock_run.call_args_list[1][1]["timeout"] == 60

    @patch("agent_site_builder.integrations.vercel.subprocess.run")
    def test_timeout_is_typed(self, mock_run, tmp_path):
        mock_run.side_effect = [_completed(), subprocess.TimeoutExpired(cmd="vercel", timeout=60)]

        with pytest.raises(DeploymentTimeout):
            VercelDeployer("tok", timeout=60).deploy(tmp_path)

    @patch("agent_site_builder.integrations.vercel.subprocess.run")
    def test_failed_install(self, mock_run, tmp_path):
        mock_run.return_value = _completed(returncode=1, stderr="npm ERR! missing script")

        with pytest.raises(DeploymentError, match="npm install"):
            VercelDeployer("tok").deploy(tmp_path)
        assert mock_run.call_count == 1

    @patch("agent_site_builder.integrations.vercel.subprocess.run")
    def test_missing_cli(self, mock_run, tmp_path):
        mock_run.side_effect = [_completed(), FileNotFoundError("vercel")]

        with pytest.raises(DeploymentError, match="`vercel` executable not found"):
            VercelDeployer("tok").deploy(tmp_path)

    @patch("agent_site_builder.integrations.vercel.subprocess.run")
    def test_no_url_in_output(self, mock_run, tmp_path):
        mock_run.side_effect = [_completed(), _completed(stdout="Deployment queued")]

        with pytest.raises(DeploymentError, match="Could not extract deployment URL"):
            VercelDeployer("tok").deploy(tmp_path)

    @patch("agent_site_builder.integrations.vercel.subprocess.run")
    def test_token_not_in_error_message(self, mock_run, tmp_path):
        mock_run.side_effect = [_completed(), _completed(returncode=1, stderr="Error: bad request")]

        with pytest.raises(DeploymentError) as exc_info:
            VercelDeployer("secret-token").deploy(tmp_path)
        assert "secret-token" not in str(exc_info.value)

import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from agent_site_builder.cli import main
from agent_site_builder.errors import PipelineError, PlanningError
from agent_site_builder.generator.plan import UiPlan
from agent_site_builder.integrations.neuralseek import AgentData
from agent_site_builder.pipeline import STEP_PLAN, GenerateSiteResult

FIXTURES = Path(__file__).parent / "fixtures"

CLEAN_ENV = {
    "SUPABASE_URL": "",
    "SUPABASE_KEY": "",
    "VERCEL_TOKEN": "",
    "SITE_BUILDER_FIELD_DEPTH": "",
    "SITE_BUILDER_OUTPUT_DIR": "",
}


def _result(url: str = "") -> GenerateSiteResult:
    return GenerateSiteResult(
        url=url,
        agent=AgentData(name="BlogCraftAI"),
        ntl=UiPlan(components=["AgentForm"]),
        component_count=1,
        project_path="/tmp/project-abc",
    )


class TestCliFields:
    def test_lists_fields(self):
        runner = CliRunner()
        result = runner.invoke(main, ["fields", str(FIXTURES / "agent_openapi.json")], env=CLEAN_ENV)

        assert result.exit_code == 0
        assert "Found 5 fields." in result.output
        assert "* blogTopic [textarea]" in result.output
        assert "tone [dropdown]" in result.output
        assert "(friendly, formal, playful)" in result.output

    def test_json_output(self):
        runner = CliRunner()
        result = runner.invoke(main, ["fields", str(FIXTURES / "agent_openapi.json"), "--json"], env=CLEAN_ENV)

        assert result.exit_code == 0
        fields = json.loads(result.output)
        assert fields[3] == {
            "name": "includeImages",
            "label": "Include Images",
            "kind": "checkbox",
            "required": False,
            "hint": "",
            "options": None,
            "default": None,
            "depth": 0,
        }

    def test_full_depth(self):
        runner = CliRunner()
        result = runner.invoke(main, ["fields", str(FIXTURES / "ask_agent.yaml"), "--depth", "full"], env=CLEAN_ENV)

        assert result.exit_code == 0
        assert "options.timeout [number]" in result.output
        assert "options.userId [text] User ID" in result.output

    def test_bad_depth(self):
        runner = CliRunner()
        result = runner.invoke(main, ["fields", str(FIXTURES / "ask_agent.yaml"), "--depth", "deep"], env=CLEAN_ENV)
        assert result.exit_code == 2

    def test_not_a_document(self, tmp_path):
        doc = tmp_path / "notes.txt"
        doc.write_text("just some notes")

        runner = CliRunner()
        result = runner.invoke(main, ["fields", str(doc)], env=CLEAN_ENV)

        assert result.exit_code == 1
        assert "not a YAML or JSON document" in result.output

    def test_invalid_settings(self):
        runner = CliRunner()
        env = {**CLEAN_ENV, "NEURALSEEK_TIMEOUT": "soon"}
        result = runner.invoke(main, ["fields", str(FIXTURES / "ask_agent.yaml")], env=env)

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestCliPayload:
    def test_builds_body(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "payload", str(FIXTURES / "ask_agent.yaml"),
            "--depth", "1",
            "-s", "question=What is NTL?",
            "-s", "options.timeout=30",
            "-s", "options.userId=",
        ], env=CLEAN_ENV)

        assert result.exit_code == 0
        assert json.loads(result.output) == {"question": "What is NTL?", "options": {"timeout": 30}}

    def test_non_finite_number_stays_valid_json(self):
        runner = CliRunner()
        result = runner.invoke(main, [
            "payload", str(FIXTURES / "agent_openapi.json"),
            "-s", "blogTopic=AI",
            "-s", "wordCount=Infinity",
        ], env=CLEAN_ENV)

        assert result.exit_code == 0
        assert json.loads(result.output) == {"blogTopic": "AI", "wordCount": "Infinity"}

    def test_bad_pair(self):
        runner = CliRunner()
        result = runner.invoke(main, ["payload", str(FIXTURES / "ask_agent.yaml"), "-s", "question"], env=CLEAN_ENV)
        assert result.exit_code == 2


class TestCliGenerate:
    @patch("agent_site_builder.cli.SitePipeline")
    def test_generate_with_agent_json(self, MockPipeline, tmp_path):
        MockPipeline.return_value.run.return_value = _result()

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", "blog writer",
            "--agent-json", str(FIXTURES / "agent_openapi.json"),
            "-o", str(tmp_path),
            "--no-deploy", "--no-record",
        ], env=CLEAN_ENV)

        assert result.exit_code == 0
        assert "Agent: BlogCraftAI" in result.output
        assert "Done!" in result.output
        settings = MockPipeline.call_args[0][0]
        assert settings.output_dir == tmp_path
        request = MockPipeline.return_value.run.call_args[0][0]
        assert request.use_neuralseek is False
        assert request.agent_json["info"]["title"] == "BlogCraftAI"
        assert request.deploy is False
        assert request.record is False

    @patch("agent_site_builder.cli.SitePipeline")
    def test_generate_reports_url(self, MockPipeline):
        MockPipeline.return_value.run.return_value = _result(url="https://blogcraft.vercel.app")

        runner = CliRunner()
        result = runner.invoke(main, ["generate", "blog writer", "--model", "gpt-4"], env=CLEAN_ENV)

        assert result.exit_code == 0
        assert "Deployed to https://blogcraft.vercel.app" in result.output
        assert MockPipeline.call_args[0][0].llm_model == "gpt-4"
        assert MockPipeline.return_value.run.call_args[0][0].use_neuralseek is True

    @patch("agent_site_builder.cli.SitePipeline")
    def test_generate_failure(self, MockPipeline):
        MockPipeline.return_value.run.side_effect = PipelineError(STEP_PLAN, PlanningError("No response from the LLM"))

        runner = CliRunner()
        result = runner.invoke(main, ["generate", "blog writer"], env=CLEAN_ENV)

        assert result.exit_code == 1
        assert "UI plan generation failed: No response from the LLM" in result.output


class TestCliProjects:
    def test_unconfigured(self):
        runner = CliRunner()
        result = runner.invoke(main, ["projects"], env=CLEAN_ENV)

        assert result.exit_code == 1
        assert "SUPABASE_URL" in result.output


class TestCliServe:
    @patch("uvicorn.run")
    def test_serve(self, mock_run):
        runner = CliRunner()
        result = runner.invoke(main, ["serve", "--port", "9000"], env=CLEAN_ENV)

        assert result.exit_code == 0
        assert mock_run.call_args[1]["port"] == 9000
        assert mock_run.call_args[1]["host"] == "127.0.0.1"

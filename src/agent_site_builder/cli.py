"""CLI entry point for agent-site-builder."""

import json
import logging
from pathlib import Path

import click

from agent_site_builder.config import FULL_DEPTH, Settings
from agent_site_builder.errors import PipelineError, SiteBuilderError
from agent_site_builder.forms.fields import FieldDescriptor
from agent_site_builder.forms.submission import build_payload
from agent_site_builder.integrations.supabase import ProjectStore
from agent_site_builder.parser.openapi import extract_user_inputs, parse_openapi
from agent_site_builder.pipeline import GenerateSiteRequest, SitePipeline


def _parse_depth(value: str) -> int | None:
    if value.lower() == FULL_DEPTH:
        return None
    try:
        return int(value)
    except ValueError:
        raise click.BadParameter(f"expected an integer or '{FULL_DEPTH}', got {value!r}")


def _load_fields(doc_path: Path, depth: str, heuristics: bool) -> list[FieldDescriptor]:
    doc = parse_openapi(doc_path)
    if doc is None:
        raise click.ClickException(f"{doc_path} is not a YAML or JSON document")
    try:
        return extract_user_inputs(doc, max_depth=_parse_depth(depth), heuristics=heuristics)
    except SiteBuilderError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool):
    """Agent Site Builder: generate and deploy a site for an AI agent from a prompt."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        ctx.obj = Settings.from_env()
    except SiteBuilderError as e:
        raise click.ClickException(str(e))


@main.command()
@click.argument("prompt")
@click.option("--agent-json", "agent_json_path", type=click.Path(exists=True, path_type=Path), default=None, help="Agent definition (JSON) to use instead of creating one.")
@click.option("--context", default=None, help="Extra context for agent creation.")
@click.option("--api-key", default=None, help="LLM API key overriding OPENAI_API_KEY.")
@click.option("--model", default=None, help="LLM model to use.")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Directory the project folder is created in.")
@click.option("--deploy/--no-deploy", default=True, help="Deploy the generated project to Vercel.")
@click.option("--record/--no-record", default=True, help="Log the project to Supabase.")
@click.pass_obj
def generate(
    settings: Settings,
    prompt: str,
    agent_json_path: Path | None,
    context: str | None,
    api_key: str | None,
    model: str | None,
    output: Path | None,
    deploy: bool,
    record: bool,
):
    """Full pipeline: create agent -> plan UI -> generate code -> deploy -> log."""
    updates = {}
    if model:
        updates["llm_model"] = model
    if output:
        updates["output_dir"] = output
    if updates:
        settings = settings.model_copy(update=updates)

    agent_json = None
    if agent_json_path:
        agent_json = json.loads(agent_json_path.read_text(encoding="utf-8"))

    request = GenerateSiteRequest(
        prompt=prompt,
        agent_json=agent_json,
        api_key=api_key,
        use_neuralseek=agent_json is None,
        context=context,
        deploy=deploy,
        record=record,
    )

    click.echo("Generating site...")
    try:
        result = SitePipeline(settings).run(request)
    except PipelineError as e:
        raise click.ClickException(f"{e.step} failed: {e.cause}")

    click.echo(f"  Agent: {result.agent.name}")
    click.echo(f"  Components: {result.component_count}")
    click.echo(f"  Project: {result.project_path}")
    if result.url:
        click.echo(f"Done! Deployed to {result.url}")
    else:
        click.echo("Done!")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--depth", default="0", help="Nested object levels to expand, or 'full'.")
@click.option("--heuristics/--no-heuristics", default=True, help="Use name/description heuristics for field kinds.")
@click.option("--json", "as_json", is_flag=True, help="Print descriptors as JSON.")
def fields(doc_path: Path, depth: str, heuristics: bool, as_json: bool):
    """List the form fields derived from an agent's OpenAPI document."""
    descriptors = _load_fields(doc_path, depth, heuristics)

    if as_json:
        click.echo(json.dumps([d.model_dump(mode="json") for d in descriptors], indent=2))
        return

    click.echo(f"Found {len(descriptors)} fields.")
    for d in descriptors:
        marker = "*" if d.required else " "
        line = f"{'  ' * d.depth}{marker} {d.name} [{d.kind.value}] {d.label}"
        if d.options:
            line += " (" + ", ".join(o.label for o in d.options) + ")"
        click.echo(line)


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("-s", "--set", "pairs", multiple=True, help="Field value as name=value (dot paths allowed).")
@click.option("--depth", default="0", help="Nested object levels to expand, or 'full'.")
def payload(doc_path: Path, pairs: tuple[str, ...], depth: str):
    """Build the agent request body from flat field values."""
    values = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise click.BadParameter(f"expected name=value, got {pair!r}", param_hint="--set")
        values[name.strip()] = value

    descriptors = _load_fields(doc_path, depth, True)
    click.echo(json.dumps(build_payload(descriptors, values), indent=2))


@main.command()
@click.pass_obj
def projects(settings: Settings):
    """List logged projects, newest first."""
    try:
        logs = ProjectStore(settings.supabase_url, settings.supabase_key).list_projects()
    except SiteBuilderError as e:
        raise click.ClickException(str(e))

    click.echo(f"Found {len(logs)} projects.")
    for log in logs:
        click.echo(f"  {log.created_at or '-'}  {log.agent_name or '-'}  {log.url}")


@main.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind.")
@click.option("--port", default=8000, type=int, help="Port to listen on.")
@click.pass_obj
def serve(settings: Settings, host: str, port: int):
    """Run the HTTP API."""
    import uvicorn

    from agent_site_builder.api import create_app

    uvicorn.run(create_app(settings), host=host, port=port, log_level="info")

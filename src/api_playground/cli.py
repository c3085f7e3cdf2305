"""CLI entry point for api-playground."""

import json
import logging
from contextlib import contextmanager
from pathlib import Path

import click

from api_playground.ai import AiAssistant
from api_playground.config import get_settings
from api_playground.context.injection import (
    estimate_tokens,
    format_endpoint,
    format_for_prompt_injection,
    trim_to_endpoint_limit,
)
from api_playground.context.models import ApiContext
from api_playground.context.store import ContextStore
from api_playground.errors import InvalidDocument, PlaygroundError
from api_playground.http_client import load_context_from_file, load_context_from_url, send_request
from api_playground.parser.base import ParserOptions


@contextmanager
def _reported():
    """Turn library errors into clean CLI failures."""
    try:
        yield
    except InvalidDocument as e:
        raise click.ClickException("Invalid documentation structure:\n  - " + "\n  - ".join(e.errors)) from e
    except PlaygroundError as e:
        raise click.ClickException(str(e)) from e


def _load(source: str, options: ParserOptions) -> ApiContext:
    """Load a context from a URL or a local file."""
    if source.startswith(("http://", "https://")):
        return load_context_from_url(source, options)
    path = Path(source)
    if not path.is_file():
        raise click.BadParameter(f"{source} is neither a URL nor a readable file", param_hint="SOURCE")
    return load_context_from_file(path, options)


def _resolve(store: ContextStore, context_id: str | None) -> ApiContext:
    context = store.get(context_id) if context_id else store.get_active()
    if context is None:
        raise click.ClickException(f"Context not found: {context_id}" if context_id else "No active context.")
    return context


def _print_endpoints(context: ApiContext) -> None:
    for endpoint in context.endpoints:
        lock = " [auth]" if endpoint.auth_required else ""
        click.echo(f"  {format_endpoint(endpoint)}{lock}")


def parser_options(f):
    f = click.option("--exclude-tag", "exclude_tags", multiple=True, help="Skip operations with this tag.")(f)
    f = click.option("--include-tag", "include_tags", multiple=True, help="Keep only operations with this tag.")(f)
    f = click.option("--include-deprecated", is_flag=True, help="Keep deprecated operations.")(f)
    f = click.option("--max-endpoints", type=click.IntRange(min=1), default=None, help="Stop after this many endpoints.")(f)
    return f


def _options(max_endpoints, include_deprecated, include_tags, exclude_tags) -> ParserOptions:
    return ParserOptions(
        max_endpoints=max_endpoints or get_settings().max_endpoints,
        include_deprecated=include_deprecated,
        include_tags=list(include_tags),
        exclude_tags=list(exclude_tags),
    )


@click.group()
@click.option("--log-level", default=None, help="Logging level (default from API_PLAYGROUND_LOG_LEVEL).")
@click.option("--store", "store_path", default=None, type=click.Path(path_type=Path), help="Context store file.")
@click.pass_context
def main(ctx: click.Context, log_level: str | None, store_path: Path | None):
    """API Playground: load API docs, build prompts, and send requests."""
    settings = get_settings()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = ContextStore(store_path or settings.store_path)


@main.command()
@click.argument("source")
@parser_options
@click.option("--json", "as_json", is_flag=True, help="Print the parsed context as JSON.")
def parse(source: str, max_endpoints, include_deprecated, include_tags, exclude_tags, as_json: bool):
    """Parse API documentation from a file or URL without saving it."""
    with _reported():
        context = _load(source, _options(max_endpoints, include_deprecated, include_tags, exclude_tags))

    if as_json:
        click.echo(context.model_dump_json(indent=2, by_alias=True))
        return
    click.echo(f"{context.name} ({context.source_type}) - {context.base_url}")
    click.echo(f"Found {len(context.endpoints)} endpoints.")
    _print_endpoints(context)


@main.group()
def context():
    """Manage saved API contexts."""


@context.command("add")
@click.argument("source")
@parser_options
@click.option("--activate/--no-activate", default=True, help="Make the new context active.")
@click.pass_obj
def context_add(store: ContextStore, source: str, max_endpoints, include_deprecated, include_tags,
                exclude_tags, activate: bool):
    """Parse SOURCE and save it as a context."""
    with _reported():
        loaded = _load(source, _options(max_endpoints, include_deprecated, include_tags, exclude_tags))
    saved = store.save(loaded)
    if activate:
        store.set_active(saved.id)
    click.echo(f"Saved {saved.name} as {saved.id} ({len(saved.endpoints)} endpoints)")


@context.command("list")
@click.pass_obj
def context_list(store: ContextStore):
    """List saved contexts, newest first."""
    active = store.get_active()
    contexts = store.get_all()
    if not contexts:
        click.echo("No saved contexts.")
        return
    for c in contexts:
        marker = "*" if active is not None and active.id == c.id else " "
        click.echo(f"{marker} {c.id}  {c.name}  {c.base_url}  ({len(c.endpoints)} endpoints)")


@context.command("show")
@click.argument("context_id", required=False)
@click.pass_obj
def context_show(store: ContextStore, context_id: str | None):
    """Show a context's endpoints (the active one by default)."""
    c = _resolve(store, context_id)
    click.echo(f"{c.name} - {c.base_url}")
    if c.description:
        click.echo(c.description)
    _print_endpoints(c)


@context.command("use")
@click.argument("context_id", required=False)
@click.option("--clear", is_flag=True, help="Clear the active context.")
@click.pass_obj
def context_use(store: ContextStore, context_id: str | None, clear: bool):
    """Set the active context."""
    if clear or context_id is None:
        store.set_active(None)
        click.echo("Active context cleared.")
        return
    if store.set_active(context_id) is None:
        raise click.ClickException(f"Context not found: {context_id}")
    click.echo(f"Active context: {context_id}")


@context.command("remove")
@click.argument("context_id")
@click.pass_obj
def context_remove(store: ContextStore, context_id: str):
    """Delete a saved context."""
    if not store.delete(context_id):
        raise click.ClickException(f"Context not found: {context_id}")
    click.echo(f"Removed {context_id}")


@context.command("export")
@click.argument("context_id")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Write to a file.")
@click.pass_obj
def context_export(store: ContextStore, context_id: str, output: Path | None):
    """Export a context as JSON."""
    with _reported():
        text = store.export_context(context_id)
    if output is None:
        click.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Exported to {output}")


@context.command("import")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.pass_obj
def context_import(store: ContextStore, file: Path):
    """Import a previously exported context."""
    with _reported():
        imported = store.import_context(file.read_text(encoding="utf-8"))
    click.echo(f"Imported {imported.name} as {imported.id}")


@context.command("stats")
@click.argument("context_id", required=False)
@click.pass_obj
def context_stats(store: ContextStore, context_id: str | None):
    """Endpoint statistics for a context."""
    c = _resolve(store, context_id)
    with _reported():
        stats = store.stats(c.id)
    click.echo(stats.model_dump_json(indent=2))


@main.command()
@click.argument("context_id", required=False)
@click.option("--max-tokens", type=int, default=None, help="Trim the context when the estimate exceeds this.")
@click.option("--trim", "trim_to", type=int, default=30, show_default=True, help="Endpoint limit when trimming.")
@click.pass_obj
def prompt(store: ContextStore, context_id: str | None, max_tokens: int | None, trim_to: int):
    """Print the prompt fragment for a context and its token estimate."""
    c = _resolve(store, context_id)
    limit = max_tokens or get_settings().max_injected_tokens
    text = format_for_prompt_injection(c)
    if estimate_tokens(text) > limit:
        text = format_for_prompt_injection(trim_to_endpoint_limit(c, trim_to))
    click.echo(text)
    click.echo(f"~{estimate_tokens(text)} tokens (estimated at 4 characters per token)", err=True)


@main.command()
@click.argument("method")
@click.argument("url")
@click.option("-H", "--header", "headers", multiple=True, help="Header as 'Name: value'.")
@click.option("-d", "--data", default=None, help="Request body.")
def send(method: str, url: str, headers: tuple[str, ...], data: str | None):
    """Send a request through the proxy and print the response."""
    parsed_headers = {}
    for header in headers:
        name, sep, value = header.partition(":")
        if not sep:
            raise click.BadParameter(f"expected 'Name: value', got {header!r}", param_hint="--header")
        parsed_headers[name.strip()] = value.strip()

    with _reported():
        response = send_request(method, url, headers=parsed_headers, body=data)
    click.echo(f"{response.status} {response.status_text} ({response.response_time_ms:.0f} ms, {response.size} B)")
    body = response.data if isinstance(response.data, str) else json.dumps(response.data, indent=2)
    click.echo(body)


@main.command()
@click.argument("message")
@click.option("--model", default=None, help="LLM model to use.")
@click.pass_obj
def ask(store: ContextStore, message: str, model: str | None):
    """Turn a natural-language MESSAGE into a request using the active context."""
    assistant = AiAssistant(model=model)
    try:
        with _reported():
            result = assistant.converse(message, context=store.get_active())
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="MESSAGE") from e

    req = result.request
    click.echo(f"{req.method} {req.url}")
    for name, value in req.headers.items():
        click.echo(f"{name}: {value}")
    if req.body is not None:
        click.echo(json.dumps(req.body, indent=2) if not isinstance(req.body, str) else req.body)
    click.echo(f"\n{result.explanation} (confidence: {result.confidence})")
    if result.clarification_needed and result.clarification_question:
        click.echo(f"? {result.clarification_question}")


@main.command()
@click.argument("body_file", type=click.Path(exists=True, path_type=Path))
@click.option("--language", default="typescript", type=click.Choice(["typescript", "python"]))
@click.option("--style", default="interface", type=click.Choice(["interface", "zod", "dataclass"]))
@click.option("--model", default=None, help="LLM model to use.")
def types(body_file: Path, language: str, style: str, model: str | None):
    """Generate type definitions from a saved JSON response body."""
    try:
        body = json.loads(body_file.read_text(encoding="utf-8"))
    except ValueError as e:
        raise click.BadParameter(f"{body_file} is not JSON: {e}", param_hint="BODY_FILE") from e
    with _reported():
        result = AiAssistant(model=model).generate_types(body, language=language, style=style)
    click.echo(result.code)
    for note in result.notes:
        click.echo(f"# {note}", err=True)

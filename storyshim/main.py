"""storyshim CLI: all commands."""

import json
from pathlib import Path
from typing import Annotated, NoReturn

import pydantic
import tomlkit
import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from storyshim import service
from storyshim.errors import ShimError
from storyshim.export import FILENAMES, MEDIA_TYPES, export
from storyshim.logging import configure_logging
from storyshim.models import ErrorResult, GenerateRequest, GenerateResponse, NormalizedIssueRecord
from storyshim.settings import CONFIG_PATH, StoryshimSettings, _list_profiles, get_settings

app = typer.Typer(help="storyshim: Jira Stories in, test-case documents out", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-P", help="Profile name from ~/.config/storyshim/config.toml"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log requests and operation events")] = False,
) -> None:
    configure_logging("DEBUG" if verbose else StoryshimSettings().log_level)


def _fail(error: ErrorResult) -> NoReturn:
    rprint(f"[red]{escape(error.error)}[/red] [dim](status {error.status_code})[/dim]")
    if error.details:
        rprint(f"[dim]{escape(error.details)}[/dim]")
    raise typer.Exit(1)


def _truncate(text: str, limit: int = 60) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 1] + "…"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("connect")
def connect(profile: ProfileOpt = None) -> None:
    """Check Jira credentials against /myself."""
    settings = get_settings(profile=profile)
    result = service.validate_and_connect(settings.connection(), settings=settings)
    if isinstance(result, ErrorResult):
        _fail(result)

    identity = result.identity
    name = identity.get("displayName") or identity.get("emailAddress") or "(unknown)"
    rprint(f"[green]✓[/green] Connected to {settings.jira_base_url} as [bold]{escape(str(name))}[/bold]")
    if identity.get("accountId"):
        rprint(f"  [dim]accountId:[/dim] {identity['accountId']}")


@app.command("stories")
def stories(
    profile: ProfileOpt = None,
    project: Annotated[
        str | None,
        typer.Option("--project", "-p", help="Restrict the search to this project key"),
    ] = None,
    all_pages: Annotated[bool, typer.Option("--all-pages", help="Follow pagination past the first page")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print records as JSON")] = False,
    as_requests: Annotated[
        bool,
        typer.Option("--requests", help="Print test-case generation request bodies as JSON"),
    ] = False,
) -> None:
    """List Stories, newest first."""
    settings = get_settings(profile=profile)
    if all_pages:
        settings = settings.model_copy(update={"all_pages": True})

    request: dict = {"config": settings.connection()}
    if project:
        request["projectKey"] = project
    result = service.fetch_stories(request, settings=settings)
    if isinstance(result, ErrorResult):
        _fail(result)

    if as_requests:
        try:
            bodies = [GenerateRequest.from_record(r).model_dump(by_alias=True) for r in result.records]
        except ShimError as exc:
            rprint(f"[red]{escape(str(exc))}[/red]")
            raise typer.Exit(1) from None
        typer.echo(json.dumps(bodies, indent=2))
        return

    if as_json:
        typer.echo(json.dumps([r.model_dump(by_alias=True) for r in result.records], indent=2))
        return

    _render_records(result.records)


def _render_records(records: list[NormalizedIssueRecord]) -> None:
    table = Table(title=f"Stories ({len(records)})")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Description", style="dim")
    table.add_column("AC")

    for record in records:
        ac = "✓" if record.acceptance_criteria else "—"
        table.add_row(record.id, record.title, _truncate(record.description), ac)

    rprint(table)


@app.command("export")
def export_cmd(
    source: Annotated[Path, typer.Argument(help="Generated test cases as JSON", exists=True, dir_okay=False)],
    fmt: Annotated[str, typer.Option("--format", "-f", help="json, csv or xlsx")] = "json",
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Destination file (defaults to test-cases.<format>)"),
    ] = None,
) -> None:
    """Write generated test cases as a JSON, CSV or XLSX document."""
    if fmt not in FILENAMES:
        rprint(f"[red]Unknown format '{fmt}'. Valid: {', '.join(FILENAMES)}[/red]")
        raise typer.Exit(1)

    try:
        response = GenerateResponse.model_validate_json(source.read_text())
    except pydantic.ValidationError as exc:
        rprint(f"[red]Not a valid test-case document:[/red] {source}\n{escape(str(exc))}")
        raise typer.Exit(1) from None

    target = output or Path(FILENAMES[fmt])
    target.write_bytes(export(response, fmt))  # type: ignore[arg-type]
    rprint(f"[green]✓[/green] Wrote {len(response.cases)} test case(s) to {target} [dim]({MEDIA_TYPES[fmt]})[/dim]")


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/storyshim/config.toml."""
    if not CONFIG_PATH.exists():
        rprint(f"[red]No config at {CONFIG_PATH}. Run 'storyshim init' first.[/red]")
        raise typer.Exit(1)

    doc = tomlkit.load(CONFIG_PATH.open())
    profiles = _list_profiles(doc)
    if profile not in profiles:
        rprint(f"[red]Profile '{profile}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}[/red]")
        raise typer.Exit(1)

    doc["default_profile"] = profile
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(profile=profile)
    not_set = "[dim](not set)[/dim]"

    token = settings.jira_api_token.get_secret_value() if settings.jira_api_token else None
    if token is None:
        masked = not_set
    elif len(token) <= 5:
        masked = "***"
    else:
        masked = f"...{token[-5:]}"

    table = Table(title="storyshim Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_profile", settings.default_profile or not_set)
    table.add_row("jira_base_url", settings.jira_base_url or not_set)
    table.add_row("jira_email", settings.jira_email or not_set)
    table.add_row("jira_api_token", masked)
    table.add_row("project_key", settings.project_key or not_set)
    table.add_row("acceptance_criteria_field", settings.acceptance_criteria_field or not_set)
    table.add_row("page_size", str(settings.page_size))
    table.add_row("all_pages", str(settings.all_pages))
    table.add_row("max_results", str(settings.max_results) if settings.max_results else not_set)
    table.add_row("timeout", f"{settings.timeout:g}s")

    rprint(table)


@app.command("init")
def init_cmd() -> None:
    """Interactive first-time setup wizard."""
    rprint("[bold]storyshim Setup Wizard[/bold]")
    rprint("")

    profile_name = typer.prompt("Profile name (e.g. work, client-a)").strip()
    if not profile_name:
        rprint("[red]Profile name cannot be empty.[/red]")
        raise typer.Exit(1)

    base_url = typer.prompt("Jira base URL (e.g. https://acme.atlassian.net)").strip()
    email = typer.prompt("Atlassian account email").strip()
    rprint("Create an API token at: https://id.atlassian.com/manage-profile/security/api-tokens")
    token = typer.prompt("Paste API token", hide_input=True).strip()

    profile_config: dict = {
        "jira_base_url": base_url,
        "jira_email": email,
        "jira_api_token": token,
    }

    project = typer.prompt("Default project key (or leave blank)", default="").strip()
    if project:
        profile_config["project_key"] = project
    ac_field = typer.prompt("Acceptance criteria custom field id (or leave blank)", default="").strip()
    if ac_field:
        profile_config["acceptance_criteria_field"] = ac_field

    if typer.confirm("Check credentials against Jira now?", default=True):
        result = service.validate_and_connect({"baseUrl": base_url, "email": email, "apiKey": token})
        if isinstance(result, ErrorResult):
            rprint(f"[yellow]Warning:[/yellow] {escape(result.error)} (status {result.status_code})")
        else:
            rprint(f"[green]✓[/green] Connected as {escape(str(result.identity.get('displayName', email)))}")

    set_as_default = typer.confirm(f"Set '{profile_name}' as default profile?", default=True)

    # Round-trip preserves any existing comments
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    doc = tomlkit.load(CONFIG_PATH.open()) if CONFIG_PATH.exists() else tomlkit.document()

    doc[profile_name] = profile_config
    if set_as_default:
        doc["default_profile"] = profile_name

    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f"[green]✓[/green] Profile '{profile_name}' written to {CONFIG_PATH}")

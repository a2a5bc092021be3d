"""Command-line interface for the Cloudcraft API."""
from __future__ import annotations

import dataclasses
import json
import os
import tempfile
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import IO, Any

import typer

try:  # pragma: no cover - exercised in runtime environments
    from rich import box
    from rich.console import Console
    from rich.table import Table
except ImportError as exc:  # pragma: no cover - optional dependency guard
    raise RuntimeError(
        "The CLI requires Rich for table rendering. Install the CLI extras via "
        "'pip install cloudcraft-client[cli]' to enable this command."
    ) from exc

from . import CloudcraftClient
from .cli_schema import CLI_TABLE_VIEWS, TableView
from .config import DEFAULT_BASE_URL
from .exceptions import ApiError, CloudcraftError
from .models import (
    AwsAccountSnapshotParameters,
    AwsAccountSnapshotRequest,
    BlueprintExportParameters,
    BlueprintExportRequest,
)

app = typer.Typer(help="Cloudcraft diagram API CLI.", no_args_is_help=True)

users_app = typer.Typer(help="User operations.")
blueprints_app = typer.Typer(help="Blueprint operations.")
accounts_app = typer.Typer(help="AWS account operations.")
app.add_typer(users_app, name="users")
app.add_typer(blueprints_app, name="blueprints")
app.add_typer(accounts_app, name="accounts")


def _build_client(
    token: str | None,
    base_url: str,
    verify_ssl: bool,
    timeout: float,
) -> CloudcraftClient:
    if not token:
        raise typer.BadParameter("--token (or CLOUDCRAFT_API_KEY) is required.")
    return CloudcraftClient(
        token=token,
        base_url=base_url,
        verify_ssl=verify_ssl,
        timeout=timeout,
    )


def _to_jsonable(payload: Any) -> Any:
    if dataclasses.is_dataclass(payload) and not isinstance(payload, type):
        return dataclasses.asdict(payload)
    if isinstance(payload, list):
        return [_to_jsonable(item) for item in payload]
    return payload


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(_to_jsonable(payload), indent=2, default=str))


console = Console(force_terminal=False, color_system=None)


def _render_rich_table(view: TableView, rows: Sequence[Mapping[str, Any]]) -> None:
    table = Table(
        title=view.title,
        box=box.SIMPLE,
        show_lines=False,
        header_style="bold cyan",
    )
    for column in view.columns:
        table.add_column(column.header, justify=column.justify)
    ordered_rows = list(rows)
    if view.sort_key:
        ordered_rows.sort(key=view.sort_key)
    for row in ordered_rows:
        table.add_row(*(column.render(row) for column in view.columns))
    console.print(table)


def _present_output(payload: Any, *, view_id: str | None, json_output: bool) -> None:
    if json_output or view_id is None:
        _echo_json(payload)
        return
    view = CLI_TABLE_VIEWS.get(view_id)
    if not view or not isinstance(payload, list):
        _echo_json(payload)
        return
    rows = [row for row in _to_jsonable(payload) if isinstance(row, Mapping)]
    if not rows:
        _echo_json(payload)
        return
    _render_rich_table(view, rows)


def _handle_request_error(exc: CloudcraftError) -> None:
    if isinstance(exc, ApiError):
        message = f"Request failed (status {exc.status_code}): {exc.message or exc}"
        remaining = exc.response.rate_limit.remaining if exc.response else None
        if remaining is not None:
            message += f"\nRate limit remaining: {remaining}"
    else:
        message = f"Request failed: {exc}"
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _env_verify_default() -> bool:
    # Accept common truthy/falsey representations (1/0, true/false, yes/no).
    env_verify = os.getenv("CLOUDCRAFT_VERIFY_SSL")
    if env_verify is None:
        return True
    return env_verify.strip().lower() not in {"0", "false", "no", "off"}


def _shared_options() -> dict[str, Any]:  # pragma: no cover - helper indirection
    return {
        "token": typer.Option(
            None,
            "--token",
            "-t",
            envvar="CLOUDCRAFT_API_KEY",
            help="Cloudcraft API key.",
            show_default=False,
        ),
        "base_url": typer.Option(
            DEFAULT_BASE_URL,
            "--base-url",
            envvar="CLOUDCRAFT_BASE_URL",
            help="Cloudcraft API base URL.",
        ),
        "verify_ssl": typer.Option(
            _env_verify_default(),
            "--verify/--no-verify",
            envvar="CLOUDCRAFT_VERIFY_SSL",
            help="Enable or disable TLS certificate verification.",
            show_default=True,
        ),
        "timeout": typer.Option(
            30.0,
            envvar="CLOUDCRAFT_TIMEOUT",
            help="Per-attempt request timeout (seconds).",
            show_default=True,
        ),
        "output_json": typer.Option(
            False,
            "--json",
            "-j",
            help="Return raw JSON instead of rendering a table.",
        ),
    }


_SHARED_OPTIONS = _shared_options()


def _render_options() -> dict[str, Any]:  # pragma: no cover - helper indirection
    return {
        "output": typer.Option(..., "--output", "-o", help="File to write the rendering to."),
        "format": typer.Option(
            "png", "--format", "-f", help="Output format (svg, png, pdf, mxGraph).", show_default=True
        ),
        "width": typer.Option(None, "--width", help="Image width in pixels."),
        "height": typer.Option(None, "--height", help="Image height in pixels."),
        "grid": typer.Option(None, "--grid/--no-grid", help="Render the grid."),
        "transparent": typer.Option(
            None, "--transparent/--opaque", help="Use a transparent background."
        ),
        "landscape": typer.Option(None, "--landscape/--portrait", help="Page orientation."),
        "scale": typer.Option(None, "--scale", help="Scaling factor."),
        "paper_size": typer.Option(None, "--paper-size", help="Paper size for PDF output."),
    }


_RENDER_OPTIONS = _render_options()


def _report_written(path: Path) -> None:
    typer.secho(f"Wrote {path.stat().st_size} bytes to {path}", fg=typer.colors.GREEN)


def _write_rendering(output: Path, render: Callable[[IO[bytes]], Any]) -> None:
    """Stream a rendering next to ``output`` and move it into place on success."""

    destination = output.expanduser()
    staging = tempfile.NamedTemporaryFile(
        dir=destination.parent, prefix=f".{destination.name}.", suffix=".part", delete=False
    )
    partial = Path(staging.name)
    try:
        with staging as target:
            render(target)
        partial.replace(destination)
    except CloudcraftError as exc:
        _handle_request_error(exc)
    finally:
        partial.unlink(missing_ok=True)
    _report_written(destination)


@users_app.command("me")
def users_me(
    token: str | None = _SHARED_OPTIONS["token"],
    base_url: str = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Show the user owning the API key."""

    with _build_client(token, base_url, verify_ssl, timeout) as client:
        try:
            user = client.users.me()
        except CloudcraftError as exc:
            _handle_request_error(exc)
            return
    _echo_json(user)


@blueprints_app.command("list")
def blueprints_list(
    token: str | None = _SHARED_OPTIONS["token"],
    base_url: str = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List blueprints."""

    with _build_client(token, base_url, verify_ssl, timeout) as client:
        try:
            blueprints = client.blueprints.list()
        except CloudcraftError as exc:
            _handle_request_error(exc)
            return
    _present_output(blueprints, view_id="blueprints.list", json_output=output_json)


@blueprints_app.command("get")
def blueprints_get(
    blueprint_id: str = typer.Argument(..., help="Blueprint identifier."),
    token: str | None = _SHARED_OPTIONS["token"],
    base_url: str = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Show one blueprint, diagram data included."""

    with _build_client(token, base_url, verify_ssl, timeout) as client:
        try:
            blueprint = client.blueprints.get(blueprint_id)
        except CloudcraftError as exc:
            _handle_request_error(exc)
            return
    _echo_json(blueprint)


@blueprints_app.command("delete")
def blueprints_delete(
    blueprint_id: str = typer.Argument(..., help="Blueprint identifier."),
    token: str | None = _SHARED_OPTIONS["token"],
    base_url: str = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Delete a blueprint."""

    with _build_client(token, base_url, verify_ssl, timeout) as client:
        try:
            client.blueprints.delete(blueprint_id)
        except CloudcraftError as exc:
            _handle_request_error(exc)
            return
    typer.secho(f"Deleted blueprint {blueprint_id}.", fg=typer.colors.GREEN)


@blueprints_app.command("export")
def blueprints_export(
    blueprint_id: str = typer.Argument(..., help="Blueprint identifier."),
    output: Path = _RENDER_OPTIONS["output"],
    format: str = _RENDER_OPTIONS["format"],
    width: int | None = _RENDER_OPTIONS["width"],
    height: int | None = _RENDER_OPTIONS["height"],
    grid: bool | None = _RENDER_OPTIONS["grid"],
    transparent: bool | None = _RENDER_OPTIONS["transparent"],
    landscape: bool | None = _RENDER_OPTIONS["landscape"],
    scale: float | None = _RENDER_OPTIONS["scale"],
    paper_size: str | None = _RENDER_OPTIONS["paper_size"],
    token: str | None = _SHARED_OPTIONS["token"],
    base_url: str = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Render a blueprint to a file."""

    request = BlueprintExportRequest(
        format=format,
        parameters=BlueprintExportParameters(
            grid=grid,
            height=height,
            landscape=landscape,
            paper_size=paper_size,
            scale=scale,
            transparent=transparent,
            width=width,
        ),
    )
    with _build_client(token, base_url, verify_ssl, timeout) as client:
        _write_rendering(
            output, lambda target: client.blueprints.export(blueprint_id, request, target=target)
        )


@accounts_app.command("list")
def accounts_list(
    token: str | None = _SHARED_OPTIONS["token"],
    base_url: str = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List linked AWS accounts."""

    with _build_client(token, base_url, verify_ssl, timeout) as client:
        try:
            accounts = client.aws_accounts.list()
        except CloudcraftError as exc:
            _handle_request_error(exc)
            return
    _present_output(accounts, view_id="accounts.list", json_output=output_json)


@accounts_app.command("get")
def accounts_get(
    account_id: str = typer.Argument(..., help="Cloudcraft AWS account identifier."),
    token: str | None = _SHARED_OPTIONS["token"],
    base_url: str = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Show one linked AWS account."""

    with _build_client(token, base_url, verify_ssl, timeout) as client:
        try:
            account = client.aws_accounts.get(account_id)
        except CloudcraftError as exc:
            _handle_request_error(exc)
            return
    _echo_json(account)


@accounts_app.command("iam-parameters")
def accounts_iam_parameters(
    token: str | None = _SHARED_OPTIONS["token"],
    base_url: str = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Show the values needed to create the Cloudcraft IAM role."""

    with _build_client(token, base_url, verify_ssl, timeout) as client:
        try:
            parameters = client.aws_accounts.iam_parameters()
        except CloudcraftError as exc:
            _handle_request_error(exc)
            return
    _echo_json(parameters)


@accounts_app.command("snapshot")
def accounts_snapshot(
    account_id: str = typer.Argument(..., help="Cloudcraft AWS account identifier."),
    region: str = typer.Argument(..., help="AWS region, e.g. us-east-1."),
    output: Path = _RENDER_OPTIONS["output"],
    format: str = _RENDER_OPTIONS["format"],
    width: int | None = _RENDER_OPTIONS["width"],
    height: int | None = _RENDER_OPTIONS["height"],
    grid: bool | None = _RENDER_OPTIONS["grid"],
    transparent: bool | None = _RENDER_OPTIONS["transparent"],
    landscape: bool | None = _RENDER_OPTIONS["landscape"],
    scale: float | None = _RENDER_OPTIONS["scale"],
    paper_size: str | None = _RENDER_OPTIONS["paper_size"],
    exclude: list[str] = typer.Option(
        [], "--exclude", help="Service to leave out (repeatable).", show_default=False
    ),
    filter: str | None = typer.Option(None, "--filter", help="Tag or name filter expression."),
    token: str | None = _SHARED_OPTIONS["token"],
    base_url: str = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Snapshot a region of a linked AWS account to a file."""

    request = AwsAccountSnapshotRequest(
        format=format,
        region=region,
        parameters=AwsAccountSnapshotParameters(
            exclude=tuple(exclude),
            filter=filter,
            grid=grid,
            height=height,
            landscape=landscape,
            paper_size=paper_size,
            scale=scale,
            transparent=transparent,
            width=width,
        ),
    )
    with _build_client(token, base_url, verify_ssl, timeout) as client:
        _write_rendering(
            output, lambda target: client.aws_accounts.snapshot(account_id, request, target=target)
        )

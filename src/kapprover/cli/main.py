"""CLI entry point for kapprover.

Invoked as::

    kapprover [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m kapprover.cli.main

Commands
--------
- plugins       List registered approvers and inspectors
- check-policy  Build an inspector pipeline and print its normalised form
- evaluate      Evaluate certificate signing requests from a YAML fixture
- version       Show version information
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import yaml
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from kapprover.approval.evaluator import DecisionEvaluator, Verdict
from kapprover.approvers.base import Approver
from kapprover.approvers.builtin import default_approver_registry
from kapprover.config import ConfigLoader, ControllerConfig
from kapprover.inspectors.builtin import default_inspector_registry
from kapprover.inspectors.pipeline import InspectorPipeline, PipelineBuilder, resolve_plugin
from kapprover.plugins.base import ConfigurationError
from kapprover.plugins.registry import PluginNotFoundError
from kapprover.store.client import StoreError
from kapprover.store.memory import InMemoryCsrStore

console = Console()
err_console = Console(stderr=True)

_DEFAULT_CONFIG = Path("kapprover.yaml")

_VERDICT_STYLES: dict[Verdict, str] = {
    Verdict.APPROVED: "green",
    Verdict.DENIED: "red",
    Verdict.DEFERRED: "yellow",
    Verdict.NO_ACTION: "dim",
    Verdict.SKIPPED: "dim",
}


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(config_path: str | None) -> ControllerConfig:
    loader = ConfigLoader()
    if config_path is None:
        return loader.load(_DEFAULT_CONFIG) if _DEFAULT_CONFIG.exists() else loader.defaults()
    return loader.load(Path(config_path))


def _build_pipeline(specs: list[str]) -> InspectorPipeline:
    return PipelineBuilder(default_inspector_registry()).build_many(specs)


def _build_approver(token: str | None) -> Approver | None:
    if not token or token.lower() == "none":
        return None
    return resolve_plugin(default_approver_registry(), token).plugin


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="kapprover")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging verbosity (default: WARNING, or log_level from the config file).",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """kapprover: certificate signing request approval policies."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    _configure_logging(log_level or "WARNING")
    logging.getLogger("kapprover").setLevel(log_level.upper() if log_level else logging.NOTSET)


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from kapprover import __version__

    console.print(
        Panel(
            f"[bold]kapprover[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Policy-driven approval of certificate signing requests.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# plugins
# ---------------------------------------------------------------------------


@cli.command(name="plugins")
def plugins_command() -> None:
    """List registered approvers and inspectors."""
    for registry in (default_approver_registry(), default_inspector_registry()):
        table = Table(title=f"Registered {registry.name}", box=box.SIMPLE)
        table.add_column("Name", style="cyan")
        table.add_column("Implementation", style="magenta")
        for name in registry.list_plugins():
            table.add_row(name, type(registry.get(name)).__name__)
        console.print(table)


# ---------------------------------------------------------------------------
# check-policy
# ---------------------------------------------------------------------------


@cli.command(name="check-policy")
@click.option(
    "--policy",
    "-p",
    "policies",
    multiple=True,
    required=True,
    help="Inspector policy, e.g. 'group=system:nodes,username'. May be repeated.",
)
def check_policy_command(policies: tuple[str, ...]) -> None:
    """Build an inspector pipeline and print its normalised form."""
    try:
        pipeline = _build_pipeline(list(policies))
    except (PluginNotFoundError, ConfigurationError) as exc:
        err_console.print(f"[red]Invalid policy:[/red] {exc}")
        sys.exit(1)

    table = Table(title="Inspector Pipeline", box=box.SIMPLE)
    table.add_column("#", style="dim")
    table.add_column("Inspector", style="cyan")
    table.add_column("Config")
    for index, named in enumerate(pipeline, start=1):
        table.add_row(str(index), named.name, named.config)
    console.print(table)
    console.print(f"  Policy: [bold]{pipeline}[/bold]")


# ---------------------------------------------------------------------------
# evaluate
# ---------------------------------------------------------------------------


@cli.command(name="evaluate")
@click.option(
    "--requests",
    "-r",
    "requests_path",
    required=True,
    type=click.Path(exists=True),
    help="YAML file with a top-level 'requests' list.",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True),
    help="Path to kapprover.yaml (defaults to ./kapprover.yaml when present).",
)
@click.option(
    "--policy",
    "-p",
    "policies",
    multiple=True,
    help="Inspector policy overriding the configured one. May be repeated.",
)
@click.option(
    "--approver",
    "-a",
    "approver_token",
    default=None,
    help="Approver overriding the configured one ('none' disables approval).",
)
@click.pass_context
def evaluate_command(
    ctx: click.Context,
    requests_path: str,
    config_path: str | None,
    policies: tuple[str, ...],
    approver_token: str | None,
) -> None:
    """Evaluate every request in a YAML fixture once."""
    try:
        config = _load_config(config_path)
    except ValueError as exc:
        err_console.print(f"[red]Invalid config:[/red] {exc}")
        sys.exit(1)
    if ctx.obj.get("log_level") is None and config.log_level is not None:
        logging.getLogger("kapprover").setLevel(config.log_level)

    try:
        pipeline = _build_pipeline(list(policies) or [config.policy])
        approver = _build_approver(approver_token if approver_token is not None else config.approver)
    except (PluginNotFoundError, ConfigurationError) as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    store = InMemoryCsrStore()
    try:
        store.load_yaml(requests_path)
    except (ValueError, StoreError, yaml.YAMLError) as exc:
        err_console.print(f"[red]Invalid requests file:[/red] {exc}")
        sys.exit(1)
    evaluator = DecisionEvaluator(
        store,
        pipeline,
        approver=approver,
        retry_policy=config.retry.to_policy(),
    )
    decisions = evaluator.evaluate_all(store.list())

    table = Table(title="Decisions", box=box.SIMPLE)
    table.add_column("Request", style="cyan")
    table.add_column("Verdict")
    table.add_column("Inspector", style="magenta")
    table.add_column("Message")
    for decision in decisions:
        style = _VERDICT_STYLES[decision.verdict]
        table.add_row(
            decision.request_name,
            f"[{style}]{decision.verdict.value}[/{style}]",
            decision.inspector or "",
            decision.message,
        )
    console.print(table)
    console.print(f"  Policy: [bold]{pipeline or '(none)'}[/bold]")
    console.print(f"  Requests evaluated: [cyan]{len(decisions)}[/cyan]")


if __name__ == "__main__":
    cli()

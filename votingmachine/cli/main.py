#!/usr/bin/env python3
"""
Voting Machine CLI

Replays scripted staking/voting sessions against an in-memory machine.

Usage:
    votingmachine run <script.json> [--config FILE] [--quorum-bps N] [--json]
    votingmachine show-config [--config FILE]
"""

import json
from pathlib import Path
from typing import Optional

import click

from votingmachine import __version__
from votingmachine.config import AppConfig, load_config
from votingmachine.exceptions import InvalidConfiguration, VotingMachineError
from votingmachine.harness import ScriptError, Session
from votingmachine.tokens import TokenError
from votingmachine.logger import configure_logging


def _load(config_file: Optional[str]) -> AppConfig:
    try:
        cfg = load_config(config_file)
    except InvalidConfiguration as e:
        raise click.ClickException(str(e))
    configure_logging(
        log_level=cfg.logging.level,
        file_output=cfg.logging.file_output,
        highlighting=cfg.logging.highlighting,
        log_file=Path(cfg.logging.log_file) if cfg.logging.log_file else None,
    )
    return cfg


@click.group()
@click.version_option(version=__version__, prog_name="votingmachine")
def cli():
    """Stake-weighted voting machine."""
    pass


@cli.command("run")
@click.argument("script_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "config_file", type=click.Path(), default=None,
              help="TOML config file (default: $VOTING_CONFIG or ./config.toml)")
@click.option("--quorum-bps", type=click.IntRange(0, 10_000), default=None,
              help="Override the participation floor, in basis points of supply")
@click.option("--json", "as_json", is_flag=True, help="Print the final snapshot as JSON")
def run_cmd(script_file: str, config_file: Optional[str], quorum_bps: Optional[int], as_json: bool):
    """Replay a JSON session script.

    Exits with status 1 when any step fails unexpectedly.

    Examples:

        votingmachine run scenario.json

        votingmachine run scenario.json --quorum-bps 5000 --json
    """
    cfg = _load(config_file)
    if quorum_bps is not None:
        cfg.machine.quorum_bps = quorum_bps

    try:
        script = json.loads(Path(script_file).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid script: {e}")

    try:
        session = Session.from_dict(script, cfg)
        session.run(script.get("steps", []))
    except (ScriptError, VotingMachineError, TokenError) as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(session.snapshot(), indent=2))
    else:
        _print_session(session)

    if session.failures:
        click.get_current_context().exit(1)


@cli.command("show-config")
@click.option("--config", "config_file", type=click.Path(), default=None,
              help="TOML config file (default: $VOTING_CONFIG or ./config.toml)")
def show_config_cmd(config_file: Optional[str]):
    """Print the effective configuration."""
    cfg = _load(config_file)
    click.echo(json.dumps(cfg.to_dict(), indent=2))


def _print_session(session: Session) -> None:
    click.echo(click.style("Steps", fg="cyan", bold=True))
    for r in session.results:
        mark = click.style("✓", fg="green") if r.ok else click.style("✗", fg="red")
        detail = r.error if r.error else r.to_dict()["value"]
        click.echo(f"  {mark} {r.index:3} {r.op:<13} {detail}")

    click.echo()
    click.echo(click.style("Events", fg="cyan", bold=True))
    for event in session.machine.events:
        fields = {k: v for k, v in event.to_dict().items() if k != "event"}
        click.echo(f"  {event.name:<15} {fields}")

    click.echo()
    click.echo(click.style("Votings", fg="cyan", bold=True))
    for i in range(session.machine.voting_count):
        v = session.machine.get_voting(i)
        color = {"ACCEPT": "green", "REJECT": "red", "NOT_APPLIED": "yellow"}.get(v.result.name)
        result = click.style(v.result.name, fg=color) if color else v.result.name
        click.echo(
            f"  #{v.id} {v.description!r}: accepted={v.total_accepted} "
            f"rejected={v.total_rejected} supply={v.total_supply} "
            f"executed={v.executed} result={result}"
        )

    if session.failures:
        click.echo()
        click.echo(click.style(f"{len(session.failures)} step(s) failed", fg="red", bold=True))


if __name__ == "__main__":
    cli()

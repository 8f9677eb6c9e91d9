"""Click CLI entry point for runtrace."""
from __future__ import annotations

import json
import logging
import os
import sys

import click

from runtrace import __version__
from runtrace.config import load_settings, save_settings
from runtrace.models import CpuCore, fits_int32
from runtrace.output.terminal import (
    print_first_run_notice,
    print_submission_status,
    render_fields,
)
from runtrace.telemetry.identity import IdentifierStore, default_identifier_path
from runtrace.telemetry.session import TelemetrySession

# config key -> parser for the command-line string
_BOOL_WORDS = {"on": True, "off": False, "true": True, "false": False}


def _parse_bool(value: str) -> bool:
    try:
        return _BOOL_WORDS[value.lower()]
    except KeyError:
        raise ValueError("Value must be 'on' or 'off'") from None


def _parse_cpu_core(value: str) -> CpuCore:
    try:
        return CpuCore[value.upper()]
    except KeyError:
        return CpuCore(int(value))


def _parse_int32(value: str) -> int:
    parsed = int(value)
    if not fits_int32(parsed):
        raise ValueError(f"{parsed} is out of 32-bit range")
    return parsed


CONFIG_KEYS = {
    "telemetry": ("enable_telemetry", _parse_bool),
    "username": ("username", str),
    "token": ("token", str),
    "telemetry_endpoint_url": ("telemetry_endpoint_url", str),
    "verify_endpoint_url": ("verify_endpoint_url", str),
    "cpu_core": ("cpu_core", _parse_cpu_core),
    "resolution_factor": ("resolution_factor", _parse_int32),
    "toggle_framelimit": ("toggle_framelimit", _parse_bool),
}


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


@click.group()
@click.version_option(version=__version__, prog_name="runtrace")
@click.option("--config-dir", type=click.Path(file_okay=False), default=None,
              help="Override the per-user config directory")
@click.pass_context
def cli(ctx: click.Context, config_dir: str | None) -> None:
    """runtrace - anonymous per-run telemetry sessions."""
    ctx.obj = {"config_dir": config_dir}


def _settings(ctx: click.Context):
    return load_settings(ctx.obj.get("config_dir"))


@cli.command("session")
@click.option("--show", is_flag=True, help="Print the collected fields")
@click.option("--no-telemetry", is_flag=True, help="Don't submit this session")
@click.option("--offline", is_flag=True,
              help="No network calls, no local last-session.json")
@click.option("--title", default=None, help="Program title to report")
@click.option("--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def session_cmd(ctx: click.Context, show: bool, no_telemetry: bool, offline: bool,
                title: str | None, verbose: bool) -> None:
    """Run one telemetry session: collect, then complete immediately."""
    _setup_logging(verbose)
    settings = _settings(ctx)

    # First-run disclosure (before anything is written)
    if not os.path.exists(settings.config_dir):
        print_first_run_notice(file=sys.stderr)

    if no_telemetry or offline:
        settings.enable_telemetry = False

    with TelemetrySession(settings, read_title=lambda: title) as session:
        pass

    if show:
        render_fields(session.fields)
    print_submission_status(session.submitted, settings.enable_telemetry)

    if not offline:
        dump_path = os.path.join(settings.config_dir, "last-session.json")
        try:
            with open(dump_path, "w", encoding="utf-8") as f:
                json.dump(session.fields.to_dicts(), f, indent=2)
        except OSError as e:
            click.echo(f"  Failed to write {dump_path}: {e}", err=True)


@cli.group("id")
def id_group() -> None:
    """Show or regenerate the anonymous installation id."""
    pass


def _id_store(ctx: click.Context) -> IdentifierStore:
    return IdentifierStore(default_identifier_path(_settings(ctx).config_dir))


@id_group.command("show")
@click.pass_context
def id_show(ctx: click.Context) -> None:
    click.echo(f"{_id_store(ctx).get():016x}")


@id_group.command("regenerate")
@click.pass_context
def id_regenerate(ctx: click.Context) -> None:
    new_id = _id_store(ctx).regenerate()
    if not new_id:
        click.echo("Failed to write telemetry id.", err=True)
        sys.exit(1)
    click.echo(f"{new_id:016x}")


@cli.group()
def config() -> None:
    """Manage runtrace configuration."""
    pass


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a configuration value."""
    if key not in CONFIG_KEYS:
        click.echo(f"Unknown config key: {key}", err=True)
        sys.exit(1)
    attr, parse = CONFIG_KEYS[key]
    try:
        parsed = parse(value)
    except ValueError as e:
        click.echo(f"Invalid value for {key}: {e}", err=True)
        sys.exit(1)

    settings = _settings(ctx)
    setattr(settings, attr, parsed)
    save_settings(settings)
    if key == "telemetry":
        click.echo(f"Telemetry {'enabled' if parsed else 'disabled'}.")
    else:
        click.echo(f"{key} updated.")


@config.command("get")
@click.argument("key")
@click.pass_context
def config_get(ctx: click.Context, key: str) -> None:
    """Get a configuration value."""
    if key not in CONFIG_KEYS:
        click.echo(f"Unknown config key: {key}", err=True)
        sys.exit(1)
    value = getattr(_settings(ctx), CONFIG_KEYS[key][0])
    if isinstance(value, bool):
        value = "on" if value else "off"
    elif isinstance(value, CpuCore):
        value = value.name.lower()
    elif key == "token" and value:
        value = "********"
    click.echo(f"{key}: {value}")


@cli.command("verify-login")
@click.argument("username")
@click.argument("token")
@click.option("--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def verify_login_cmd(ctx: click.Context, username: str, token: str, verbose: bool) -> None:
    """Check a username/token pair against the verification endpoint."""
    from runtrace.telemetry.login import LoginVerifier

    _setup_logging(verbose)
    verifier = LoginVerifier(_settings(ctx))
    try:
        valid = verifier.verify_login(username, token).result()
    finally:
        verifier.shutdown()
    if valid:
        click.echo(f"Login verified for {username}.")
    else:
        click.echo("Login could not be verified.", err=True)
        sys.exit(1)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()

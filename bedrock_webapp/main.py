"""
bedrockctl — CLI entrypoint.

Usage:
    bedrockctl --help
    bedrockctl install blog.example.com --ssl
    bedrockctl env set blog.example.com staging
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from bedrock_webapp import __version__
from bedrock_webapp.core.observability.logging_config import setup_logging


def _load_module(ctx: click.Context):
    """Build the BedrockModule from the configured bedrock.yml (cached on ctx)."""
    if "module" in ctx.obj:
        return ctx.obj["module"]

    from bedrock_webapp.core.config.loader import ConfigError, load_config
    from bedrock_webapp.core.services.bedrock import BedrockModule

    try:
        config = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    ctx.obj["module"] = BedrockModule.from_config(config)
    return ctx.obj["module"]


@click.group()
@click.version_option(version=__version__, prog_name="bedrockctl")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to bedrock.yml (default: $BEDROCK_CONFIG or auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Install and manage Bedrock sites on a hosting account."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("BEDROCK_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("BEDROCK_LOG_FILE"),
        log_file_level=os.environ.get("BEDROCK_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


# ── install ─────────────────────────────────────────────────────


@cli.command()
@click.argument("hostname")
@click.option("--path", default="", help="Sub-path under the hostname (refused).")
@click.option("--version", "version", default="", help="Bedrock version (default: latest).")
@click.option("--title", default=None, help="Site title.")
@click.option("--email", default=None, help="Admin email (default: account email).")
@click.option("--user", default=None, help="Admin user (default: account user).")
@click.option("--password", default=None, help="Admin password (default: generated).")
@click.option("--ssl", is_flag=True, help="Use https:// for the site URL.")
@click.option("--hold", is_flag=True, help="Keep resources on failure for inspection.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    hostname: str,
    path: str,
    version: str,
    title: str | None,
    email: str | None,
    user: str | None,
    password: str | None,
    ssl: bool,
    hold: bool,
    as_json: bool,
) -> None:
    """Install Bedrock on HOSTNAME."""
    module = _load_module(ctx)
    options = {
        "version": version,
        "title": title,
        "email": email,
        "user": user,
        "password": password,
        "ssl": ssl,
        "hold": hold,
    }
    report = module.install_report(hostname, path, options)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(0 if report.ok else 1)

    if report.ok:
        click.secho(f"✅ Bedrock installed on {hostname}", fg="green", bold=True)
        if report.password and not ctx.obj.get("quiet"):
            click.echo(f"   Admin password: {report.password}")
        return

    for warning in report.warnings:
        click.secho(f"⚠️  {warning}", fg="yellow")
    click.secho(f"❌ {report.message} ({report.state})", fg="red")
    sys.exit(1)


# ── versions ────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def versions(ctx: click.Context, as_json: bool) -> None:
    """List available Bedrock versions."""
    result = _load_module(ctx).get_versions()

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    if not result:
        click.secho("❌ Cannot determine available versions", fg="red")
        sys.exit(1)
    for v in result:
        click.echo(v)


# ── valid / version ─────────────────────────────────────────────


@cli.command()
@click.argument("hostname")
@click.option("--path", default="", help="Sub-path under the hostname.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def valid(ctx: click.Context, hostname: str, path: str, as_json: bool) -> None:
    """Check whether HOSTNAME holds a Bedrock install."""
    ok = _load_module(ctx).valid(hostname, path)

    if as_json:
        click.echo(json.dumps({"hostname": hostname, "path": path, "valid": ok}, indent=2))
        sys.exit(0 if ok else 1)

    if ok:
        click.secho(f"✅ {hostname} is a Bedrock install", fg="green")
        return
    click.secho(f"❌ {hostname} is not a Bedrock install", fg="red")
    sys.exit(1)


@cli.command("version")
@click.argument("hostname")
@click.option("--path", default="", help="Sub-path under the hostname.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def version_cmd(ctx: click.Context, hostname: str, path: str, as_json: bool) -> None:
    """Show the WordPress version pinned by HOSTNAME's install."""
    result = _load_module(ctx).get_version(hostname, path)

    if as_json:
        click.echo(json.dumps({"hostname": hostname, "version": result}, indent=2))
        sys.exit(0 if result is not None else 1)

    if result is None:
        click.secho(f"❌ Cannot determine version for {hostname}", fg="red")
        sys.exit(1)
    click.echo(result)


# ── env ─────────────────────────────────────────────────────────


@cli.group()
def env() -> None:
    """Deployment environment (WP_ENV) commands."""


@env.command("get")
@click.argument("hostname")
@click.option("--path", default="", help="Sub-path under the hostname.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def env_get(ctx: click.Context, hostname: str, path: str, as_json: bool) -> None:
    """Show the active environment."""
    result = _load_module(ctx).get_environment(hostname, path)

    if as_json:
        click.echo(json.dumps({"hostname": hostname, "environment": result}, indent=2))
        sys.exit(0 if result is not None else 1)

    if result is None:
        click.secho(f"❌ No environment configured for {hostname}", fg="red")
        sys.exit(1)
    click.echo(result)


@env.command("set")
@click.argument("hostname")
@click.argument("environment")
@click.option("--path", default="", help="Sub-path under the hostname.")
@click.pass_context
def env_set(ctx: click.Context, hostname: str, environment: str, path: str) -> None:
    """Switch the active environment to ENVIRONMENT."""
    from bedrock_webapp.core.errors import BedrockError

    try:
        ok = _load_module(ctx).set_environment(hostname, path, environment)
    except (BedrockError, ValueError) as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if not ok:
        click.secho(f"❌ No .env found for {hostname}", fg="red")
        sys.exit(1)
    click.secho(f"✅ {hostname} now runs as {environment}", fg="green")


@env.command("list")
@click.argument("hostname")
@click.option("--path", default="", help="Sub-path under the hostname.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def env_list(ctx: click.Context, hostname: str, path: str, as_json: bool) -> None:
    """List environment profiles."""
    profiles = _load_module(ctx).get_environments(hostname, path)

    if as_json:
        payload = None if profiles is None else [p.model_dump() for p in profiles]
        click.echo(json.dumps(payload, indent=2))
        sys.exit(0 if profiles is not None else 1)

    if profiles is None:
        click.secho(f"❌ No environments directory for {hostname}", fg="red")
        sys.exit(1)
    for p in profiles:
        marker = " ← active" if p.is_active else ""
        click.echo(f"  • {p.name}{marker}")


if __name__ == "__main__":
    cli()

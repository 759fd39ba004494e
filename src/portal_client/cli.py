"""CLI interface for the portal API client"""

import json
import logging
import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

import click

from portal_client.application.bootstrap import create_api_client, create_diagnostics
from portal_client.domain.errors import ApiRequestError
from portal_client.infrastructure.config.config_manager import ConfigManager

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def parse_headers(values: Tuple[str, ...]) -> Dict[str, str]:
    """Parse repeated "Name: value" options into a header dict

    Raises:
        click.BadParameter: If a header has no colon
    """
    headers = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"Invalid header (expected 'Name: value'): {value}")
        headers[name.strip()] = content.strip()
    return headers


def _format_output(result) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False)


def _load_config(ctx) -> ConfigManager:
    config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
    api_config = config_manager.get_api_config()
    if ctx.obj.get("base_url"):
        api_config.base_url = ctx.obj["base_url"]
    if ctx.obj.get("mode"):
        api_config.mode = ctx.obj["mode"]
    return config_manager


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .portal-client.yml config file",
)
@click.option("--base-url", type=str, help="API base URL. Overrides config and PORTAL_API_BASE_URL.")
@click.option(
    "--mode",
    type=click.Choice(["development", "production"], case_sensitive=False),
    help="Deployment profile. Overrides config and PORTAL_MODE.",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path, base_url: str, mode: str):
    """Portal API client - resilient requests and connection diagnostics"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["base_url"] = base_url
    ctx.obj["mode"] = mode.lower() if mode else None


@cli.command()
@click.argument("path", type=str)
@click.option("--method", "-X", default="GET", show_default=True, help="HTTP method")
@click.option("--data", "-d", type=str, help="Request body (sent as-is)")
@click.option("--header", "-H", "headers", multiple=True, help="Extra header, 'Name: value'")
@click.option("--timeout", type=float, help="Per-attempt timeout in seconds. Overrides config.")
@click.pass_context
def request(ctx, path: str, method: str, data: str, headers: Tuple[str, ...], timeout: float):
    """Send one request to the API and print the response.

    PATH: Endpoint path (e.g. /api/ping) or absolute URL
    """
    verbose = ctx.obj.get("verbose", False)

    try:
        config_manager = _load_config(ctx)
        client = create_api_client(config_manager.config)
        try:
            result = client.request(
                path,
                method=method,
                headers=parse_headers(headers),
                body=data,
                timeout=timeout,
            )
        finally:
            client.close()
        click.echo(_format_output(result))

    except ApiRequestError as e:
        status = f" {e.status_code}" if e.status_code else ""
        _die(f"Request failed ({e.kind.value}{status}): {e.message}", verbose=verbose, exc=e)
    except click.ClickException:
        raise
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def diagnose(ctx, as_json: bool):
    """Run connectivity, configuration and CORS checks against the API."""
    verbose = ctx.obj.get("verbose", False)

    try:
        config_manager = _load_config(ctx)
        client = create_api_client(config_manager.config)
        try:
            results = create_diagnostics(config_manager.config, client).run_all()
        finally:
            client.close()
    except click.ClickException:
        raise
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2, default=str))
    else:
        click.echo("=" * 80)
        click.echo("API Diagnostics")
        click.echo("=" * 80)
        for result in results:
            click.echo(result.to_text())
            if verbose and result.details is not None:
                click.echo(f"    {json.dumps(result.details, default=str)}")

    passed = sum(1 for r in results if r.success)
    click.echo(f"\n{passed}/{len(results)} checks passed", err=as_json)
    if passed < len(results):
        sys.exit(1)


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()

"""CLI entry point for radci.

The Radicle CI broker runs `radci` once per event, writes the request to its
stdin and reads the responses from its stdout. Logs therefore go to stderr.
"""

from __future__ import annotations

import importlib.metadata
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler

console = Console(stderr=True)
logger = logging.getLogger("radci")

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def setup_logging(level_name: str) -> None:
    """Route all logging to stderr through rich; source paths are shown only at debug level."""
    level = _LOG_LEVELS.get(str(level_name).lower(), logging.INFO)
    handler = RichHandler(console=console, show_path=level == logging.DEBUG, rich_tracebacks=True)
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)


def _build_dependencies(config: dict):
    """Wire the concrete GitHub, Radicle and git clients from the loaded config."""
    import tempfile

    from radci_core.broker.channel import Broker
    from radci_core.gh.actions import GitHubActions
    from radci_core.git.source import materialize
    from radci_core.orchestrator import Dependencies
    from radci_core.radicle.patch import RadicleHttpd

    return Dependencies(
        broker=Broker(sys.stdin.buffer, sys.stdout),
        materialize=materialize,
        github=GitHubActions(token=config.get("github_token")),
        comment_client=RadicleHttpd(config["radicle_httpd_url"], config.get("radicle_session_token", "")),
        radicle_home=config["radicle_home"],
        scratch_root=config.get("scratch_dir") or tempfile.gettempdir(),
        start_lag=config["workflows_start_lag_secs"],
        poll_interval=config["workflows_poll_interval_secs"],
        total_timeout=config["workflows_poll_timeout_secs"],
    )


@click.command()
@click.version_option(
    version=importlib.metadata.version("radci"),
    prog_name="radci",
)
@click.option(
    "--config",
    "config_path",
    default=".radci.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="RADCI_CONFIG",
)
@click.option(
    "--loglevel",
    "log_level",
    type=click.Choice(sorted(_LOG_LEVELS)),
    default=None,
    help="Log level. Overrides LOG_LEVEL and the config file.",
)
def main(config_path: str, log_level: str | None):
    """Relay GitHub Actions results for one Radicle CI broker event.

    \b
    Environment variables:
      RAD_HOME                      Radicle home (default ~/.radicle)
      RAD_HTTPD_URL                 radicle-httpd URL used for patch comments
      RAD_SESSION_TOKEN             radicle-httpd session token
      GITHUB_PAT                    GitHub token (falls back to GITHUB_TOKEN, then gh CLI)
      WORKFLOWS_START_LAG_SECS      Delay before the first GitHub query
      WORKFLOWS_POLL_INTERVAL_SECS  Delay between GitHub queries
      WORKFLOWS_POLL_TIMEOUT_SECS   Give up waiting after this long
    """
    from radci_core.config import load_config
    from radci_core.orchestrator import new_run_id, serve
    from radci_cli.auth import resolve_github_token

    config = load_config(config_path, cli_overrides={"log_level": log_level})
    setup_logging(config["log_level"])

    config["github_token"] = resolve_github_token()
    if not config["github_token"]:
        logger.warning("No GitHub token found; querying GitHub anonymously.")

    logger.debug(
        "starting with configuration: radicle_home=%s httpd=%s start_lag=%ss interval=%ss timeout=%ss",
        config["radicle_home"],
        config["radicle_httpd_url"],
        config["workflows_start_lag_secs"],
        config["workflows_poll_interval_secs"],
        config["workflows_poll_timeout_secs"],
    )
    logger.info("radci %s is starting", importlib.metadata.version("radci"))

    deps = _build_dependencies(config)
    raw = deps.broker.read_request()
    outcome = serve(raw, deps, new_run_id())
    if outcome is None:
        sys.exit(1)
    logger.info("radci terminated successfully")

"""
main.py
───────
CLI entry point for ts-discord-status.

  ts-discord-status --config config.json            run the status bot
  ts-discord-status --config config.json --dry-run  print once, no Discord

To add a new platform:
  1. Write your sink in adapters/myplatform.py (subclass MessageSink)
  2. Import it here
  3. Build it in build_bridge() instead of DiscordSink
  That's it — the bridge handles the rest automatically.
"""

from __future__ import annotations
import logging
import signal
import threading

import typer

from adapters.discord import DiscordSink
from bridge import Bridge
from config import Config, load_config, log_level
from dry_run import render
from errors import BridgeConnectionError, ConfigError, FetchError
from registry import ArtifactRegistry
from rename_gate import RenameGate
from teamspeak_reader import TeamSpeakReader

logger = logging.getLogger("ts-discord-status")

app = typer.Typer(
    name="ts-discord-status",
    help="Display TeamSpeak server status in Discord.",
    add_completion=False,
)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=log_level(level) or logging.INFO,
        format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
        force=True,
    )


def build_reader(cfg: Config) -> TeamSpeakReader:
    return TeamSpeakReader(
        host=cfg.teamspeak.host,
        query_port=cfg.teamspeak.query_port,
        username=cfg.teamspeak.username,
        password=cfg.teamspeak.password,
        server_id=cfg.teamspeak.server_id,
    )


def build_bridge(cfg: Config) -> Bridge:
    options = cfg.display.options()
    channel_id = cfg.discord.channel_id

    sink = DiscordSink(token=cfg.discord.token)
    return Bridge(
        source=build_reader(cfg),
        sink=sink,
        registry=ArtifactRegistry(sink, channel_id, options),
        gate=RenameGate(sink, channel_id),
        options=options,
        interval=cfg.display.update_interval,
    )


def run_dry_run(cfg: Config) -> None:
    """Fetch TeamSpeak state once and print what would be posted."""
    logger.info("Running in dry-run mode")

    reader = build_reader(cfg)
    reader.start()
    try:
        snapshot = reader.fetch_snapshot()
    finally:
        reader.stop()

    typer.echo()
    typer.echo(render(snapshot, cfg.display.options()))
    typer.echo()


def run_bridge(cfg: Config) -> None:
    shutdown = threading.Event()

    def _on_signal(signum, frame):
        logger.info("Received shutdown signal")
        shutdown.set()

    previous = {
        sig: signal.signal(sig, _on_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        bridge = build_bridge(cfg)
        bridge.start(cancel=shutdown)
        try:
            shutdown.wait()
        finally:
            bridge.stop()
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    logger.info("Shutdown complete")


@app.command()
def main(
    config_path: str = typer.Option(
        ...,
        "--config",
        "-c",
        help="Path to configuration file (JSON).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Fetch TeamSpeak state and print what would be posted, without connecting to Discord.",
    ),
) -> None:
    """A minimal service that keeps a Discord embed in sync with a TeamSpeak server."""
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        typer.echo(f"✘  Invalid configuration: {e}", err=True)
        raise typer.Exit(code=1)

    setup_logging(cfg.logging.level)

    try:
        if dry_run:
            run_dry_run(cfg)
        else:
            run_bridge(cfg)
    except (BridgeConnectionError, FetchError) as e:
        logger.error("%s", e)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()

# === NAVMAP v1 ===
# {
#   "module": "ContentRouter.cli",
#   "purpose": "Typer CLI for running a resolution and inspecting persisted router state",
#   "sections": [
#     {"id": "resolve", "name": "cmd_resolve", "anchor": "function-cmd-resolve", "kind": "function"},
#     {"id": "state", "name": "cmd_state", "anchor": "function-cmd-state", "kind": "function"},
#     {"id": "config-show", "name": "cmd_config_show", "anchor": "function-cmd-config-show", "kind": "function"},
#     {"id": "config-schema", "name": "cmd_config_schema", "anchor": "function-cmd-config-schema", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Command-line front end for the content router.

Commands:
- ``resolve``: run one resolution against a JSON-file store and print the decision
- ``state``: print the persisted store
- ``config show``: print the merged configuration (file < env < CLI)
- ``config schema``: print the configuration JSON Schema

Example:
    contentrouter resolve --source-url https://ex.com/go --mode classic
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .config import RouterEnvironment, export_config_schema, load_config
from .config.models import RouterConfig
from .core import DisplayMode
from .engine import ResolutionEngine
from .environment import DeviceInfo, SocketReachabilityMonitor, StaticReachabilityMonitor
from .errors import ContentRouterError
from .identity import UserIdentity
from .logging_utils import setup_logging
from .network.client import create_http_client
from .network.probe import ProbeClient
from .store import JsonFileStore

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help="Resolve which content experience to show.", no_args_is_help=True)
config_app = typer.Typer(help="Inspect router configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")


def _overrides(
    mode: Optional[str],
    source_url: Optional[str],
    privacy_identifier: Optional[str],
    timeout_s: Optional[float],
) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {
        "mode": mode,
        "source_url": source_url,
        "privacy_identifier": privacy_identifier,
    }
    if timeout_s is not None:
        overrides["http"] = {"timeout_s": timeout_s}
    return overrides


def _decision_payload(decision: DisplayMode, engine: ResolutionEngine) -> Dict[str, Any]:
    return {
        "display_mode": decision.kind.value,
        "url": decision.url,
        "content_mode": str(engine.current_mode),
        "source_url": engine.current_source_url,
    }


async def _run_resolution(
    config: RouterConfig,
    store: JsonFileStore,
    *,
    assume_online: bool,
    device: DeviceInfo,
    skip_delays: bool,
) -> Dict[str, Any]:
    reachability = StaticReachabilityMonitor(True) if assume_online else SocketReachabilityMonitor()
    async with create_http_client(config.http) as http:
        probes = ProbeClient(
            http, timeout_s=config.http.timeout_s, max_redirects=config.http.max_redirects
        )
        engine_kwargs: Dict[str, Any] = {"reachability": reachability, "device": device}
        if skip_delays:
            engine_kwargs["timing"] = config.timing.model_copy(
                update={"splash_delay_s": 0.0, "review_prompt_delay_s": 0.0}
            )
        engine = ResolutionEngine.from_config(
            config,
            store=store,
            probes=probes,
            identity=UserIdentity(store),
            **engine_kwargs,
        )
        decision = await engine.resolve()
        return _decision_payload(decision, engine)


@app.command("resolve")
def cmd_resolve(
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path (YAML/JSON)"
    ),
    mode: Optional[str] = typer.Option(
        None, "--mode", help="classic | classic_no_token | dropbox | privacy"
    ),
    source_url: Optional[str] = typer.Option(None, "--source-url", help="Starting source URL"),
    privacy_identifier: Optional[str] = typer.Option(
        None, "--privacy-id", help="Identifier that forces basic in privacy mode"
    ),
    timeout_s: Optional[float] = typer.Option(None, "--timeout", help="Probe timeout in seconds"),
    store_path: Optional[Path] = typer.Option(None, "--store", help="JSON store path"),
    assume_online: bool = typer.Option(
        False, "--assume-online", help="Skip the reachability probe"
    ),
    device_idiom: str = typer.Option("phone", "--device-idiom", help="Declared device idiom"),
    skip_delays: bool = typer.Option(False, "--skip-delays", help="Disable splash/review delays"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Run one resolution and print the decision."""
    env = RouterEnvironment()
    setup_logging(level="DEBUG" if verbose else env.log_level, log_dir=env.log_dir)
    try:
        config = load_config(
            config_file,
            cli_overrides=_overrides(mode, source_url, privacy_identifier, timeout_s),
        )
        store = JsonFileStore(store_path or env.store_path)
        payload = asyncio.run(
            _run_resolution(
                config,
                store,
                assume_online=assume_online,
                device=DeviceInfo(idiom=device_idiom),
                skip_delays=skip_delays,
            )
        )
    except ContentRouterError as e:
        typer.secho(f"❌ Resolution failed: {e}", fg="red", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(payload, indent=2))
    elif payload["url"]:
        typer.echo(f"{payload['display_mode']} {payload['url']}")
    else:
        typer.echo(payload["display_mode"])


@app.command("state")
def cmd_state(
    store_path: Optional[Path] = typer.Option(None, "--store", help="JSON store path"),
) -> None:
    """Print the persisted router state."""
    env = RouterEnvironment()
    try:
        store = JsonFileStore(store_path or env.store_path)
    except ContentRouterError as e:
        typer.secho(f"❌ Cannot read store: {e}", fg="red", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(store.snapshot(), indent=2, sort_keys=True))


@config_app.command("show")
def cmd_config_show(
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path (YAML/JSON)"
    ),
    mode: Optional[str] = typer.Option(None, "--mode"),
    source_url: Optional[str] = typer.Option(None, "--source-url"),
    privacy_identifier: Optional[str] = typer.Option(None, "--privacy-id"),
) -> None:
    """Print the merged configuration after precedence application."""
    try:
        cfg = load_config(
            config_file,
            cli_overrides=_overrides(mode, source_url, privacy_identifier, None),
        )
    except ContentRouterError as e:
        typer.secho(f"❌ Error loading config: {e}", fg="red", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(cfg.model_dump(mode="json"), indent=2))


@config_app.command("schema")
def cmd_config_schema() -> None:
    """Print the configuration JSON Schema."""
    typer.echo(json.dumps(export_config_schema(), indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()

"""Command-line entry point for routing one transcribed request."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

from .ai.client import ClientSettings, ResponsesClient
from .ai.routing.ambient_context import build_ambient_context, snapshot_editor
from .ai.routing.errors import RoutingError
from .ai.routing.router import IntentRouter, ReplySource, RouterConfig, RoutingOutcome
from .ai.routing.terminal_tracker import TerminalContextTracker
from .ai.tools.arguments import Position
from .ai.tools.context import ToolContext
from .ai.tools.dispatcher import DispatcherConfig, ToolDispatcher
from .ai.tools.host import HostCapabilities
from .ai.tools.tool_wiring import build_default_registry
from .host.local import LocalHost
from .services.codex_auth import load_codex_auth
from .services.settings import Settings, SettingsStore, redact_secret
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)

EXIT_HANDLED = 0
EXIT_UNHANDLED = 1
EXIT_ERROR = 2


class DocumentOpenError(RuntimeError):
    """Raised when the file passed with ``--file`` cannot be opened."""


@dataclass(slots=True)
class Credentials:
    api_key: str
    account_id: str | None = None


def configure_logging(settings: Settings) -> Path:
    """Configure logging for the CLI from the effective settings."""

    log_path = logging_utils.configure_from_settings(settings)
    _LOGGER.debug("Logging to %s", log_path)
    return log_path


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except (OSError, ValueError) as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return Settings()


def resolve_credentials(settings: Settings, *, codex_auth_path: Path | None = None) -> Credentials | None:
    """Prefer the configured API key, then the Codex CLI login."""

    if settings.api_key:
        return Credentials(api_key=settings.api_key, account_id=settings.account_id)
    auth = load_codex_auth(codex_auth_path)
    if auth is None:
        return None
    return Credentials(api_key=auth.access_token, account_id=settings.account_id or auth.account_id)


def create_router(
    settings: Settings,
    capabilities: HostCapabilities,
    reply_source: ReplySource,
    tracker: TerminalContextTracker,
) -> IntentRouter:
    """Wire the registry, dispatcher, and ambient context into a router."""

    context = ToolContext(
        host=capabilities,
        terminal_tracker=tracker,
        agent_focus_command=settings.agent_focus_command,
        agent_add_file_command=settings.agent_add_file_command,
    )
    dispatcher = ToolDispatcher(
        build_default_registry(),
        context,
        DispatcherConfig(
            default_timeout=settings.tool_timeout if settings.tool_timeout > 0 else None,
            log_arguments=settings.debug_logging,
            log_results=settings.debug_logging,
        ),
    )

    def ambient() -> str:
        terminal = capabilities.terminal.active_terminal()
        return build_ambient_context(
            lambda before, after: snapshot_editor(capabilities.editor.active_editor(), before, after),
            tracker,
            active_session=terminal.session_id if terminal is not None else None,
            terminal_name=terminal.name if terminal is not None else None,
            lines_before=settings.editor_context_lines_before,
            lines_after=settings.editor_context_lines_after,
            terminal_max_lines=settings.terminal_context_max_lines,
        )

    return IntentRouter(reply_source, dispatcher, ambient, RouterConfig(max_turns=_resolve_max_tool_turns(settings)))


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the `voiceprompt` console script."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    settings_path = args.settings_path or os.environ.get("VOICEPROMPT_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return EXIT_ERROR

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)
    if args.debug:
        settings.debug_logging = True
    configure_logging(settings)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return EXIT_HANDLED

    if args.command != "route":
        parser.print_help(sys.stderr)
        return EXIT_ERROR

    if args.no_stream:
        settings.stream = False

    credentials = resolve_credentials(settings)
    if credentials is None:
        print(
            "No API key configured. Set VOICEPROMPT_API_KEY, use --set api_key=..., or log in with the Codex CLI.",
            file=sys.stderr,
        )
        return EXIT_ERROR

    utterance = " ".join(args.utterance).strip()
    if not utterance:
        print("Nothing to route: the utterance is empty.", file=sys.stderr)
        return EXIT_ERROR

    try:
        outcome = asyncio.run(_route(utterance, settings, credentials, args))
    except RoutingError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_ERROR
    except DocumentOpenError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_ERROR

    if outcome.handled:
        print(f"handled by {outcome.tool} after {outcome.turns} turn(s)")
        return EXIT_HANDLED
    print(f"unhandled ({outcome.reason}) after {outcome.turns} turn(s)")
    return EXIT_UNHANDLED


async def _route(
    utterance: str,
    settings: Settings,
    credentials: Credentials,
    args: argparse.Namespace,
) -> RoutingOutcome:
    host = LocalHost(workspace=Path(args.workspace) if args.workspace else Path.cwd())
    if args.file:
        try:
            editor = await host.editor.open_document(args.file)
        except OSError as exc:
            raise DocumentOpenError(f"Unable to open {args.file}: {exc}") from exc
        editor.set_selection(Position(max(0, args.line), max(0, args.column)))

    client = ResponsesClient(_client_settings(settings, credentials))
    tracker = TerminalContextTracker(max_lines=settings.terminal_buffer_lines)
    router = create_router(settings, host.capabilities(), client, tracker)
    try:
        return await router.run(utterance)
    finally:
        await tracker.aclose()
        await client.aclose()


def _client_settings(settings: Settings, credentials: Credentials) -> ClientSettings:
    return ClientSettings(
        base_url=settings.base_url,
        api_key=credentials.api_key,
        model=settings.model,
        account_id=credentials.account_id,
        request_timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        retry_min_seconds=settings.retry_min_seconds,
        retry_max_seconds=settings.retry_max_seconds,
        stream=settings.stream,
        default_headers=settings.default_headers,
        debug_logging=settings.debug_logging,
    )


def _resolve_max_tool_turns(settings: Settings | None) -> int:
    """Clamp the configured turn limit into a safe operating range."""

    raw_value = getattr(settings, "max_tool_turns", 6) if settings else 6
    try:
        value = int(raw_value)
    except (TypeError, ValueError):
        value = 6
    return max(1, min(value, 20))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voiceprompt",
        description="Route a transcribed voice request to one editor, terminal, or keyboard action.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload (with secrets redacted) and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.voiceprompt/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command")
    route = subparsers.add_parser("route", help="Route one utterance.")
    route.add_argument("utterance", nargs="+", help="Transcribed request text.")
    route.add_argument("--workspace", metavar="DIR", help="Workspace root (default: current directory).")
    route.add_argument("--file", metavar="PATH", help="File to open as the active editor.")
    route.add_argument("--line", type=int, default=0, help="Zero-based cursor line in --file.")
    route.add_argument("--column", type=int, default=0, help="Zero-based cursor column in --file.")
    route.add_argument("--no-stream", action="store_true", help="Request a buffered (non-streamed) reply.")
    return parser


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        annotation = type_hints.get(key, fields[key].type)
        overrides[key] = _coerce_value(annotation, raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = _resolve_annotation(annotation)
    normalized = raw_value.strip()

    if target is str or target is Any:
        return normalized
    if target is bool:
        return _parse_bool(normalized)
    if target is int:
        return int(normalized, 10)
    if target is float:
        return float(normalized)
    if target is dict:
        try:
            return json.loads(normalized or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError("Dict overrides must be valid JSON objects") from exc
    return normalized


def _resolve_annotation(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is None:
        return annotation
    if origin is dict:
        return origin
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    if not args:
        return origin
    return args[0]


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    payload = asdict(settings)
    payload["api_key"] = redact_secret(payload.get("api_key") or "")
    metadata = {
        "path": str(store.path),
        "secret_backend": store.vault.strategy,
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": _active_env_overrides(),
        "log_path": str(logging_utils.get_log_path() or ""),
    }
    json.dump({"settings": payload, "meta": metadata}, destination, indent=2)
    destination.write("\n")


def _active_env_overrides() -> list[str]:
    return sorted(name for name in os.environ if name.startswith("VOICEPROMPT_"))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

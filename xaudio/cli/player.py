"""Command line front end: inspect the catalog and run the interactive player."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Callable, Dict, Optional, Sequence, TextIO

from xaudio.backend.catalog import Catalog, load_catalog
from xaudio.backend.common.errors import XAudioError
from xaudio.backend.common.logging import init_logging
from xaudio.backend.player.session import PlayerSession, PlayerSnapshot
from ._utils import (
    build_subparser,
    exit_with_error,
    print_json,
    require_subcommand,
    to_serializable,
)

from xaudio.config import settings

WINDOW_LABEL = "xaudio"

HELP_TEXT = """Commands:
  play | pause | toggle      start, pause or toggle playback
  next | prev                move one track forward/back
  track ID                   jump to a track by id
  volume LEVEL               set volume (0.0 - 1.0)
  seek SECONDS               jump within the current track (not on radio)
  retry                      retry after an error
  list                       show the playlist
  status                     show the full player state as JSON
  help                       show this help
  quit                       close the player"""


def _catalog(source: Optional[str]) -> Catalog:
    resolved = settings.resolve_catalog_source(source) if source else settings.get_settings().catalog_source
    try:
        return load_catalog(resolved)
    except XAudioError as exc:
        exit_with_error(str(exc))
        raise


def render_status(snapshot: PlayerSnapshot) -> str:
    marker = ">" if snapshot.is_playing else "||"
    parts = [f"[{snapshot.status.value}]", marker]
    if snapshot.is_radio:
        parts.append("radio")
    parts.append(snapshot.display_time)
    parts.append(snapshot.marquee_text)
    parts.append(f"vol {snapshot.volume:.2f}")
    return " ".join(parts)


def render_playlist(catalog: Catalog, current_id: int) -> str:
    lines = []
    for track in catalog:
        marker = "*" if track.id == current_id else " "
        lines.append(f"{marker} {track.id:>2}  {track.name}")
    return "\n".join(lines)


class PlayerShell:
    """Line-oriented stand-in for the player window."""

    def __init__(
        self,
        session: PlayerSession,
        *,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ) -> None:
        self._session = session
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._commands: Dict[str, Callable[[list[str]], None]] = {
            "play": self._no_args(session.play),
            "pause": self._no_args(session.pause),
            "toggle": self._no_args(session.toggle),
            "next": self._no_args(session.next_track),
            "prev": self._no_args(session.prev_track),
            "retry": self._no_args(session.retry),
            "track": self._track,
            "volume": self._volume,
            "seek": self._seek,
            "list": self._list,
            "status": self._status,
            "help": self._help,
        }

    def run(self) -> int:
        self._write(f"== {WINDOW_LABEL} ==")
        self._write(render_status(self._session.snapshot()))
        for raw in self._stdin:
            if not self.execute(raw):
                break
        return 0

    def execute(self, line: str) -> bool:
        tokens = line.strip().split()
        if not tokens:
            return True
        command, args = tokens[0].lower(), tokens[1:]
        if command in {"quit", "exit", "q"}:
            return False
        handler = self._commands.get(command)
        if handler is None:
            self._write(f"Unknown command '{command}'. Type 'help' for a list of commands.")
            return True
        try:
            handler(args)
        except ValueError as exc:
            self._write(f"Invalid argument: {exc}")
        return True

    # ------------------------------------------------------------------
    # Command handlers
    # ------------------------------------------------------------------
    def _no_args(self, action: Callable[[], PlayerSnapshot]) -> Callable[[list[str]], None]:
        def _handler(_args: list[str]) -> None:
            self._write(render_status(action()))

        return _handler

    def _track(self, args: list[str]) -> None:
        self._write(render_status(self._session.change_track(int(self._single(args, "track ID")))))

    def _volume(self, args: list[str]) -> None:
        self._write(render_status(self._session.change_volume(float(self._single(args, "volume LEVEL")))))

    def _seek(self, args: list[str]) -> None:
        seconds = float(self._single(args, "seek SECONDS"))
        if not self._session.can_seek:
            self._write("Seeking is unavailable on radio streams")
            return
        self._write(render_status(self._session.seek(seconds)))

    def _list(self, _args: list[str]) -> None:
        snapshot = self._session.snapshot()
        self._write(render_playlist(self._session.catalog, snapshot.current_track.id))

    def _status(self, _args: list[str]) -> None:
        payload = to_serializable(self._session.snapshot().as_dict())
        self._write(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False))

    def _help(self, _args: list[str]) -> None:
        self._write(HELP_TEXT)

    @staticmethod
    def _single(args: list[str], usage: str) -> str:
        if len(args) != 1:
            raise ValueError(f"usage: {usage}")
        return args[0]

    def _write(self, text: str) -> None:
        self._stdout.write(text + "\n")
        self._stdout.flush()


def _vlc_session(catalog: Catalog, current: settings.Settings) -> PlayerSession:
    from xaudio.backend.player.vlc_resource import VlcAudioResource

    return PlayerSession(
        catalog,
        lambda signals: VlcAudioResource(signals, vlc_root=current.vlc_runtime_root),
        initial_volume=current.initial_volume,
        retry_delay_sec=current.retry_delay_sec,
    )


def _handle_catalog_list(args: argparse.Namespace) -> None:
    catalog = _catalog(args.source)
    print_json(to_serializable(catalog.as_dicts()))


def _handle_catalog_use(args: argparse.Namespace) -> None:
    _catalog(args.source)
    updated = settings.update_catalog_source(args.source)
    print_json(to_serializable(updated.as_dict()))


def _handle_check(_: argparse.Namespace) -> None:
    from xaudio.startup import quick_self_check

    report = quick_self_check(settings.get_settings())
    print_json(to_serializable(report))
    if report["status"] == "fail":
        sys.exit(1)


def _handle_play(args: argparse.Namespace) -> None:
    current = settings.get_settings()
    init_logging(args.log_level or current.log_level)
    catalog = _catalog(args.source)
    try:
        session = _vlc_session(catalog, current)
    except XAudioError as exc:
        exit_with_error(str(exc))
        return

    with session:
        if args.track is not None:
            session.change_track(args.track)
        if args.autoplay:
            session.play()
        PlayerShell(session).run()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xaudio", description="Playlist player driven by a playback state machine.")
    subparsers = parser.add_subparsers(dest="command")
    require_subcommand(subparsers)

    # Catalog ------------------------------------------------------------
    catalog_parser = build_subparser(subparsers, "catalog", help="Inspect or select the track catalog.")
    catalog_sub = catalog_parser.add_subparsers(dest="catalog_command")
    require_subcommand(catalog_sub)

    catalog_list = build_subparser(catalog_sub, "list", help="Print the tracks of a catalog as JSON.")
    catalog_list.add_argument("--source", help="Catalog file or http(s) URL (defaults to the configured catalog).")
    catalog_list.set_defaults(func=_handle_catalog_list)

    catalog_use = build_subparser(catalog_sub, "use", help="Validate a catalog and store it as the default.")
    catalog_use.add_argument("source", help="Catalog file or http(s) URL.")
    catalog_use.set_defaults(func=_handle_catalog_use)

    # Check --------------------------------------------------------------
    check_parser = build_subparser(subparsers, "check", help="Run the startup self-check and print the report.")
    check_parser.set_defaults(func=_handle_check)

    # Play ---------------------------------------------------------------
    play_parser = build_subparser(subparsers, "play", help="Open the interactive player.")
    play_parser.add_argument("--source", help="Catalog file or http(s) URL (defaults to the configured catalog).")
    play_parser.add_argument("--track", type=int, help="Track id to select on start.")
    play_parser.add_argument("--autoplay", action="store_true", help="Start playing once the first track is ready.")
    play_parser.add_argument("--log-level", help="Override the configured log level.")
    play_parser.set_defaults(func=_handle_play)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return
    handler(args)


if __name__ == "__main__":  # pragma: no cover
    main()

from __future__ import annotations

import argparse
import sys
import time
from typing import Callable, List, Optional, Sequence

import cmus_notify.logger as log
from cmus_notify.config import Settings, load_settings
from cmus_notify.errors import CmusUnavailableError, NoEventsError, ProtocolError
from cmus_notify.events import events
from cmus_notify.notification import NotificationsHandler
from cmus_notify.notify_send import NotifySendSink
from cmus_notify.player_types import NotificationSink, Snapshot
from cmus_notify.query import build_query_command, parse_snapshot, ping_cmus


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cmus-notify",
        description="Desktop notifications for the cmus music player.",
    )
    # Flags default to None so that only explicitly given ones override the config.
    parser.add_argument("-t", "--timeout", type=int, help="notification timeout in seconds")
    parser.add_argument("-p", "--persistent", action="store_true", default=None)
    parser.add_argument("-c", "--cover", dest="show_track_cover", action="store_true", default=None)
    parser.add_argument("--no-cover", dest="show_track_cover", action="store_false")
    parser.add_argument("-i", "--icon", dest="notification_static_cover")
    parser.add_argument("-w", "--cover-path", dest="cover_path_template")
    parser.add_argument("-d", "--depth", type=int)
    parser.add_argument("-a", "--app-name")
    parser.add_argument("-s", "--summary")
    parser.add_argument("--body")
    parser.add_argument("-b", "--cmus-remote-bin", dest="cmus_remote_bin_path")
    parser.add_argument("-k", "--cmus-socket", dest="cmus_socket_address")
    parser.add_argument("-x", "--socket-password", dest="cmus_socket_password")
    parser.add_argument("-r", "--interval", type=int, help="poll interval in milliseconds")
    parser.add_argument("-l", "--link", action="store_true", default=None)
    parser.add_argument("-u", "--force-use-external-cover", action="store_true", default=None)
    parser.add_argument("-n", "--no-use-external-cover", action="store_true", default=None)
    parser.add_argument("-g", "--show-player-notifications", action="store_true", default=None)
    parser.add_argument("--config", help="path to a JSON config file")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> Settings:
    settings = load_settings([args.config] if args.config else None)
    return settings.override(vars(args))


def sleep_seconds(settings: Settings, snapshot: Snapshot) -> float:
    """
    Poll interval in seconds. An interval of 0 waits for the current track
    to end instead (at least one second).
    """
    if settings.interval > 0:
        return settings.interval / 1000.0
    track = snapshot.track
    return float(max(track.duration - track.position, 1))


def poll_cycle(
    command: List[str], previous: Snapshot, handler: NotificationsHandler
) -> Snapshot:
    """
    One poll: query, parse, diff, notify. Returns the snapshot to keep.

    A malformed response keeps `previous`; CmusUnavailableError propagates.
    """
    raw = ping_cmus(command)
    try:
        current = parse_snapshot(raw)
    except ProtocolError as e:
        log.warning(f"[POLL] discarding malformed response: {e}")
        return previous

    if current == previous and not previous.sentinel:
        return previous

    try:
        found = events(previous, current)
    except NoEventsError:
        log.debug("[POLL] first snapshot, no events")
        found = []

    if found:
        handler.show_notifications(found)
    return current


def run(
    settings: Settings,
    sink: Optional[NotificationSink] = None,
    sleep: Callable[[float], None] = time.sleep,
    max_cycles: Optional[int] = None,
) -> int:
    command = build_query_command(
        settings.cmus_remote_bin_path,
        settings.cmus_socket_address,
        settings.cmus_socket_password,
    )
    log.debug(f"[START] query command: {command}")

    own_sink = sink is None
    if own_sink:
        sink = NotifySendSink(settings.app_name)
    handler = NotificationsHandler(settings, sink)
    previous = Snapshot.initial()
    cycles = 0

    try:
        while max_cycles is None or cycles < max_cycles:
            cycles += 1
            try:
                previous = poll_cycle(command, previous, handler)
            except CmusUnavailableError as e:
                if settings.link:
                    log.info(f"[STOP] cmus is not reachable, exiting: {e}")
                    return 0
                log.debug(f"[POLL] cmus is not reachable: {e}")
            sleep(sleep_seconds(settings, previous))
    finally:
        if own_sink:
            sink.cleanup()

    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Entrypoint.

    Honors:
      - CMUS_NOTIFY_CONFIG (config file path)
      - CMUS_NOTIFY_LOG_LEVEL (overridden by -v / -vv)
    """
    args = parse_args(argv)
    level = {0: None, 1: "INFO"}.get(args.verbose, "DEBUG")
    log.setup(level)

    settings = settings_from_args(args)
    log.debug(f"[START] settings: {settings}")
    try:
        return run(settings)
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Settings for the notifier.

Values come from, in increasing priority:
  1. the defaults below
  2. the first JSON config file found:
       $CMUS_NOTIFY_CONFIG
       $XDG_CONFIG_HOME/cmus-notify/config.json (~/.config when unset)
  3. command-line arguments (applied by main via Settings.override)

Keys in the JSON file are the Settings field names.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Optional

import cmus_notify.logger as log
from cmus_notify.player_types import EventKind

NOTIFICATION_TIMEOUT = 5
NOTIFICATION_BODY = (
    "<b>Playing:</b> {title} \n <b>album:</b> {album} \n <b>Artist:</b> {artist} - {date}"
)
NOTIFICATION_SUMMARY = "{title}"
NOTIFICATION_APP_NAME = "C* Music Player"
DEFAULT_REMOTE_COMMAND = "cmus-remote"
DEFAULT_MAX_DEPTH = 3
DEFAULT_INTERVAL_MS = 1000

DEFAULT_STATUS_BODY = "<b>{status}</b>"
DEFAULT_STATUS_SUMMARY = "Status changed"
DEFAULT_VOLUME_BODY = "Volume changed to {volume}%"
DEFAULT_VOLUME_SUMMARY = "Volume changed"
DEFAULT_SHUFFLE_BODY = "Shuffle mode changed to {shuffle}"
DEFAULT_SHUFFLE_SUMMARY = "Shuffle mode changed"
DEFAULT_REPEAT_BODY = "Repeat mode changed to {repeat}"
DEFAULT_REPEAT_SUMMARY = "Repeat mode changed"
DEFAULT_AAA_MODE_BODY = "AAA mode changed to {aaa_mode}"
DEFAULT_AAA_MODE_SUMMARY = "AAA mode changed"
DEFAULT_SETTING_TIMEOUT = 1


@dataclass(frozen=True)
class NotificationTemplate:
    summary: str
    body: str
    timeout: int


@dataclass(frozen=True)
class Settings:
    timeout: int = NOTIFICATION_TIMEOUT
    persistent: bool = False
    show_track_cover: bool = True
    notification_static_cover: Optional[str] = None
    cover_path_template: Optional[str] = None
    depth: int = DEFAULT_MAX_DEPTH
    app_name: str = NOTIFICATION_APP_NAME
    summary: str = NOTIFICATION_SUMMARY
    body: str = NOTIFICATION_BODY
    cmus_remote_bin_path: str = DEFAULT_REMOTE_COMMAND
    cmus_socket_address: Optional[str] = None
    cmus_socket_password: Optional[str] = None
    interval: int = DEFAULT_INTERVAL_MS
    link: bool = False
    force_use_external_cover: bool = False
    no_use_external_cover: bool = False
    show_player_notifications: bool = False

    status_notification_summary: str = DEFAULT_STATUS_SUMMARY
    status_notification_body: str = DEFAULT_STATUS_BODY
    status_notification_timeout: int = DEFAULT_SETTING_TIMEOUT
    volume_notification_summary: str = DEFAULT_VOLUME_SUMMARY
    volume_notification_body: str = DEFAULT_VOLUME_BODY
    volume_notification_timeout: int = DEFAULT_SETTING_TIMEOUT
    shuffle_notification_summary: str = DEFAULT_SHUFFLE_SUMMARY
    shuffle_notification_body: str = DEFAULT_SHUFFLE_BODY
    shuffle_notification_timeout: int = DEFAULT_SETTING_TIMEOUT
    repeat_notification_summary: str = DEFAULT_REPEAT_SUMMARY
    repeat_notification_body: str = DEFAULT_REPEAT_BODY
    repeat_notification_timeout: int = DEFAULT_SETTING_TIMEOUT
    aaa_mode_notification_summary: str = DEFAULT_AAA_MODE_SUMMARY
    aaa_mode_notification_body: str = DEFAULT_AAA_MODE_BODY
    aaa_mode_notification_timeout: int = DEFAULT_SETTING_TIMEOUT

    def template_for(self, kind: EventKind) -> Optional[NotificationTemplate]:
        """Templates used for an event kind; None for kinds that never notify."""
        if kind is EventKind.TRACK_CHANGED:
            return NotificationTemplate(self.summary, self.body, self.timeout)
        prefix = _TEMPLATE_PREFIXES.get(kind)
        if prefix is None:
            return None
        return NotificationTemplate(
            getattr(self, f"{prefix}_notification_summary"),
            getattr(self, f"{prefix}_notification_body"),
            getattr(self, f"{prefix}_notification_timeout"),
        )

    def override(self, values: Dict[str, Any]) -> "Settings":
        """Copy with every non-None value in `values` applied."""
        known = {f.name for f in fields(self)}
        updates = {k: v for k, v in values.items() if k in known and v is not None}
        return replace(self, **updates)


_TEMPLATE_PREFIXES = {
    EventKind.STATUS_CHANGED: "status",
    EventKind.VOLUME_CHANGED: "volume",
    EventKind.SHUFFLE_CHANGED: "shuffle",
    EventKind.REPEAT_CHANGED: "repeat",
    EventKind.AAA_MODE_CHANGED: "aaa_mode",
}


def config_search_paths() -> List[str]:
    paths = []
    explicit = os.environ.get("CMUS_NOTIFY_CONFIG")
    if explicit:
        paths.append(explicit)
    config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    paths.append(os.path.join(config_home, "cmus-notify", "config.json"))
    return paths


def _coerce(name: str, value: Any, default: Any) -> Any:
    # JSON already gives bool/int/str; reject obvious type mismatches
    expected = type(default) if default is not None else str
    if value is None or isinstance(value, expected):
        return value
    if expected is int and not isinstance(value, bool):
        return int(value)
    raise ValueError(f"{name} must be {expected.__name__}, got {type(value).__name__}")


def settings_from_dict(data: Dict[str, Any], source: str = "<dict>") -> Settings:
    defaults = Settings()
    values: Dict[str, Any] = {}
    known = {f.name for f in fields(defaults)}

    for key, value in data.items():
        if key not in known:
            log.warning(f"[CONFIG] {source}: ignoring unknown key {key!r}")
            continue
        try:
            values[key] = _coerce(key, value, getattr(defaults, key))
        except (TypeError, ValueError) as e:
            log.warning(f"[CONFIG] {source}: ignoring {key!r}: {e}")

    return defaults.override(values)


def load_settings(paths: Optional[List[str]] = None) -> Settings:
    """Load settings from the first readable config file, or the defaults."""
    for path in paths if paths is not None else config_search_paths():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            continue
        except json.JSONDecodeError as e:
            log.error(f"[CONFIG] invalid JSON in {path}: {e}")
            continue
        except OSError as e:
            log.error(f"[CONFIG] cannot read {path}: {e}")
            continue

        if not isinstance(data, dict):
            log.error(f"[CONFIG] {path}: top level must be an object")
            continue
        log.info(f"[CONFIG] loaded {path}")
        return settings_from_dict(data, source=path)

    log.debug("[CONFIG] no config file found, using defaults")
    return Settings()

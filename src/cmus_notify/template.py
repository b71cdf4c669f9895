from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from cmus_notify.player_types import PlayerSettings, Track

# Placeholders that make a notification persistent, whether or not they render.
VOLATILE_KEYS = ("lyrics", "progress", "progress_bar")

# Alternate spellings accepted when the literal key is not itself a tag.
TAG_ALIASES: Dict[str, str] = {
    "year": "date",
    "track_number": "tracknumber",
    "disc_number": "discnumber",
    "album_artist": "albumartist",
}

PROGRESS_BAR_WIDTH = 20


def get_keys(template: str) -> List[str]:
    """Return the placeholder keys (text between `{` and `}`) in order of appearance."""
    keys: List[str] = []
    key: Optional[str] = None
    for c in template:
        if c == "{":
            key = ""
        elif c == "}":
            if key is not None:
                keys.append(key)
            key = None
        elif key is not None:
            key += c
    return keys


def is_volatile(template: str) -> bool:
    return any(key in VOLATILE_KEYS for key in get_keys(template))


def format_clock(seconds: int) -> str:
    minutes, seconds = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_progress(position: int, duration: int) -> str:
    return f"{format_clock(position)} / {format_clock(duration)}"


def format_progress_bar(position: int, duration: int, width: int = PROGRESS_BAR_WIDTH) -> str:
    if duration <= 0:
        filled = 0
    else:
        filled = min(width, position * width // duration)
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def _bool(value: bool) -> str:
    return "true" if value else "false"


@dataclass(frozen=True)
class TemplateContext:
    """Single lookup surface over a track and the player settings."""

    track: Track
    player: PlayerSettings

    def resolve(self, key: str) -> str:
        value = self._track_value(key)
        if value is None:
            value = self._player_value(key)
        return "" if value is None else value

    def _track_value(self, key: str) -> Optional[str]:
        track = self.track
        if key == "status":
            return str(track.status)
        if key == "title":
            return track.get_name()
        if key == "progress":
            return format_progress(track.position, track.duration)
        if key == "progress_bar":
            return format_progress_bar(track.position, track.duration)
        value = track.get_tag(key)
        if value is None and key in TAG_ALIASES:
            value = track.get_tag(TAG_ALIASES[key])
        return value

    def _player_value(self, key: str) -> Optional[str]:
        player = self.player
        if key == "repeat":
            return _bool(player.repeat)
        if key == "repeat_current":
            return _bool(player.repeat_current)
        if key == "shuffle":
            return str(player.shuffle)
        if key == "aaa_mode":
            return str(player.aaa_mode)
        if key == "volume_left":
            return str(player.volume.left)
        if key == "volume_right":
            return str(player.volume.right)
        if key == "volume":
            left, right = player.volume.left, player.volume.right
            return str(left) if left == right else f"{left}:{right}"
        return None


def render(template: str, track: Track, player: PlayerSettings) -> str:
    """
    Substitute every `{key}` in one left-to-right pass.

    Text outside braces is copied verbatim. Unknown keys become "".
    An unterminated `{...` tail is copied as-is.
    """
    context = TemplateContext(track=track, player=player)
    out: List[str] = []
    key: Optional[List[str]] = None

    for c in template:
        if key is None:
            if c == "{":
                key = []
            else:
                out.append(c)
        elif c == "}":
            out.append(context.resolve("".join(key)))
            key = None
        elif c == "{":
            # abandoned opening brace
            out.append("{" + "".join(key))
            key = []
        else:
            key.append(c)

    if key is not None:
        out.append("{" + "".join(key))
    return "".join(out)

from __future__ import annotations

import subprocess
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Type

import cmus_notify.logger as log
from cmus_notify.errors import (
    CmusUnavailableError,
    CorruptedResponseError,
    DurationError,
    EmptyPathError,
    NoStatusError,
    PositionError,
    ProtocolError,
    UnknownAAAModeError,
    UnknownShuffleModeError,
    UnknownStatusError,
    VolumeError,
)
from cmus_notify.player_types import (
    AAAMode,
    PlayerSettings,
    Shuffle,
    Snapshot,
    Track,
    TrackStatus,
    Volume,
)

SETTINGS_PREFIX = "set "
TAG_PREFIX = "tag "


def _header_value(line: Optional[str]) -> Optional[str]:
    # "key value" -> "value"; None when the line is missing or has no space
    if line is None or " " not in line:
        return None
    return line.split(" ", 1)[1]


def _parse_seconds(
    line: Optional[str], name: str, error: Type[ProtocolError]
) -> int:
    value = _header_value(line)
    if value is None:
        raise error(f"Missing {name}")
    try:
        seconds = int(value)
    except ValueError:
        raise error(f"invalid {name} {value!r}") from None
    if seconds < 0:
        raise error(f"negative {name} {value!r}")
    return seconds


def parse_status(value: str) -> TrackStatus:
    try:
        return TrackStatus(value)
    except ValueError:
        raise UnknownStatusError(value) from None


def parse_shuffle(value: str) -> Shuffle:
    try:
        return Shuffle(value)
    except ValueError:
        raise UnknownShuffleModeError(value) from None


def parse_aaa_mode(value: str) -> AAAMode:
    try:
        return AAAMode(value)
    except ValueError:
        raise UnknownAAAModeError(value) from None


def _parse_volume(value: str) -> int:
    try:
        volume = int(value)
    except ValueError:
        raise VolumeError(f"invalid volume {value!r}") from None
    if not 0 <= volume <= 100:
        raise VolumeError(f"volume out of range {value!r}")
    return volume


def parse_tags(lines: Iterator[str]) -> Tuple[Dict[str, str], Optional[str]]:
    """
    Consume `tag <key> <value>` lines from the iterator.

    Returns (tags, first_non_tag_line). A tag line without a value is skipped.
    The value keeps any inner spaces ("tag replaygain_track_gain -9.4 dB").
    """
    tags: Dict[str, str] = {}
    for raw_line in lines:
        line = raw_line.strip()
        if not line.startswith(TAG_PREFIX):
            return tags, raw_line
        rest = line[len(TAG_PREFIX):]
        if " " not in rest:
            log.debug(f"[PARSE] skipping tag line without value: {line!r}")
            continue
        key, value = rest.split(" ", 1)
        tags[key] = value
    return tags, None


def parse_track(raw: str) -> Track:
    """
    Parse the track block of a `cmus-remote -Q` response.

    The first four lines are fixed: status, file, duration, position.
    Tag lines follow until the first line that is not a tag line.
    """
    lines = iter(raw.splitlines())

    status_value = _header_value(next(lines, None))
    if status_value is None:
        raise NoStatusError()
    status = parse_status(status_value)

    path_line = next(lines, None)
    if path_line is not None and path_line.startswith(SETTINGS_PREFIX):
        # stopped player without a current file jumps straight to settings
        raise EmptyPathError()
    path = _header_value(path_line)
    if path is None:
        raise EmptyPathError()

    duration = _parse_seconds(next(lines, None), "duration", DurationError)
    position = _parse_seconds(next(lines, None), "position", PositionError)
    tags, _rest = parse_tags(lines)

    return Track(
        status=status,
        path=path,
        tags=tags,
        duration=duration,
        position=position,
    )


def parse_player_settings(lines: Iterable[str]) -> PlayerSettings:
    """
    Build PlayerSettings from `set <key> <value>` lines.

    Lines not starting with "set " are ignored, as are unknown keys.
    Missing keys keep their defaults.
    """
    repeat = False
    repeat_current = False
    shuffle = Shuffle.OFF
    aaa_mode = AAAMode.ALL
    vol_left = 0
    vol_right = 0

    for line in lines:
        if not line.startswith(SETTINGS_PREFIX):
            continue
        rest = line[len(SETTINGS_PREFIX):]
        if " " not in rest:
            raise CorruptedResponseError(line)
        key, value = rest.split(" ", 1)

        if key == "repeat":
            repeat = value == "true"
        elif key == "repeat_current":
            repeat_current = value == "true"
        elif key == "shuffle":
            shuffle = parse_shuffle(value)
        elif key == "aaa_mode":
            aaa_mode = parse_aaa_mode(value)
        elif key == "vol_left":
            vol_left = _parse_volume(value)
        elif key == "vol_right":
            vol_right = _parse_volume(value)

    return PlayerSettings(
        repeat=repeat,
        repeat_current=repeat_current,
        shuffle=shuffle,
        aaa_mode=aaa_mode,
        volume=Volume(left=vol_left, right=vol_right),
    )


def split_response(raw: str) -> Tuple[str, str]:
    """
    Split a raw response into (track_block, settings_block) at the first
    line beginning with "set ".
    """
    lines = raw.splitlines(keepends=True)
    for index, line in enumerate(lines):
        if line.startswith(SETTINGS_PREFIX):
            return "".join(lines[:index]), "".join(lines[index:])
    return raw, ""


def parse_snapshot(raw: str) -> Snapshot:
    """Parse one complete poll response into a Snapshot."""
    track_block, settings_block = split_response(raw)
    track = parse_track(track_block)
    player = parse_player_settings(settings_block.splitlines())

    log.debug(
        f"[PARSE] status={track.status.value} path={track.path!r} "
        f"tags={len(track.tags)} position={track.position}/{track.duration}"
    )
    return Snapshot(track=track, player=player)


# ---------- Query command ----------


def build_query_command(
    remote_bin: str,
    socket_address: Optional[str] = None,
    socket_password: Optional[str] = None,
) -> List[str]:
    """
    Build the argv used to query the player.

    `remote_bin` may be a full run command ("flatpak run io.github.cmus.cmus").
    """
    command = remote_bin.split()
    if socket_address:
        command += ["--server", socket_address]
    if socket_password:
        command += ["--passwd", socket_password]
    command.append("-Q")
    return command


def ping_cmus(command: List[str], timeout_s: float = 5.0) -> str:
    """Run the query command once and return its decoded stdout."""
    try:
        p = subprocess.run(
            command,
            check=False,
            capture_output=True,
            timeout=timeout_s,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise CmusUnavailableError(f"failed to run {command[0]!r}: {e}") from e

    if p.returncode != 0:
        stderr = p.stderr.decode("utf-8", errors="replace").strip()
        raise CmusUnavailableError(stderr or f"exit status {p.returncode}")

    try:
        return p.stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CmusUnavailableError(f"undecodable response: {e}") from e

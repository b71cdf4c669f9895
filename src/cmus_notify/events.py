from __future__ import annotations

from typing import List

import cmus_notify.logger as log
from cmus_notify.errors import NoEventsError
from cmus_notify.player_types import Event, EventKind, Snapshot

# Emission order for player-setting changes; any subset may fire per cycle.
PLAYER_SETTING_EVENTS = (
    (("shuffle",), EventKind.SHUFFLE_CHANGED),
    (("repeat", "repeat_current"), EventKind.REPEAT_CHANGED),
    (("aaa_mode",), EventKind.AAA_MODE_CHANGED),
    (("volume",), EventKind.VOLUME_CHANGED),
)


def events(previous: Snapshot, current: Snapshot) -> List[Event]:
    """
    Derive the ordered change events between two consecutive snapshots.

    Rules:
      - either side is the initial sentinel -> NoEventsError
      - path changed -> exactly [TRACK_CHANGED], nothing else is compared
      - otherwise at most one of STATUS_CHANGED / POSITION_CHANGED (in that order)
      - then every player setting that changed, in PLAYER_SETTING_EVENTS order
    Each event carries the *current* track and player settings.
    """
    if previous.sentinel or current.sentinel:
        raise NoEventsError()

    found: List[Event] = []
    prev_track, cur_track = previous.track, current.track

    if cur_track.path != prev_track.path:
        log.debug(f"[DIFF] track changed: {prev_track.path!r} -> {cur_track.path!r}")
        return [Event.of(EventKind.TRACK_CHANGED, current)]

    if cur_track.status != prev_track.status:
        log.debug(f"[DIFF] status changed: {prev_track.status} -> {cur_track.status}")
        found.append(Event.of(EventKind.STATUS_CHANGED, current))
    elif cur_track.position != prev_track.position:
        found.append(Event.of(EventKind.POSITION_CHANGED, current))

    if current.player != previous.player:
        for attrs, kind in PLAYER_SETTING_EVENTS:
            old = tuple(getattr(previous.player, a) for a in attrs)
            new = tuple(getattr(current.player, a) for a in attrs)
            if old != new:
                log.debug(f"[DIFF] {kind.value}: {old} -> {new}")
                found.append(Event.of(kind, current))

    return found

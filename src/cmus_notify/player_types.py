from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol

from PIL import Image

# ---------- Player vocabulary ----------


class TrackStatus(Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"

    def __str__(self) -> str:
        return self.value.capitalize()


class Shuffle(Enum):
    OFF = "off"
    TRACKS = "tracks"
    ALBUMS = "albums"

    def __str__(self) -> str:
        return self.value.capitalize()


class AAAMode(Enum):
    ALL = "all"
    ALBUM = "album"
    ARTIST = "artist"

    def __str__(self) -> str:
        return self.value.capitalize()


# ---------- Snapshot ----------


@dataclass(frozen=True)
class Volume:
    left: int = 0
    right: int = 0


@dataclass(frozen=True)
class PlayerSettings:
    repeat: bool = False
    repeat_current: bool = False
    shuffle: Shuffle = Shuffle.OFF
    aaa_mode: AAAMode = AAAMode.ALL
    volume: Volume = field(default_factory=Volume)


@dataclass(frozen=True)
class Track:
    status: TrackStatus = TrackStatus.STOPPED
    path: str = ""
    tags: Dict[str, str] = field(default_factory=dict)
    duration: int = 0
    position: int = 0

    def get_tag(self, key: str) -> Optional[str]:
        return self.tags.get(key)

    def get_name(self) -> str:
        """Title tag if present, otherwise the file name without its extension."""
        title = self.tags.get("title")
        if title is not None:
            return title
        return os.path.splitext(os.path.basename(self.path))[0]


@dataclass(frozen=True)
class Snapshot:
    track: Track = field(default_factory=Track)
    player: PlayerSettings = field(default_factory=PlayerSettings)
    # marks the "no poll yet" value; never part of equality
    sentinel: bool = field(default=False, compare=False)

    @classmethod
    def initial(cls) -> "Snapshot":
        return cls(sentinel=True)


# ---------- Events ----------


class EventKind(Enum):
    TRACK_CHANGED = "track_changed"
    STATUS_CHANGED = "status_changed"
    POSITION_CHANGED = "position_changed"
    SHUFFLE_CHANGED = "shuffle_changed"
    REPEAT_CHANGED = "repeat_changed"
    AAA_MODE_CHANGED = "aaa_mode_changed"
    VOLUME_CHANGED = "volume_changed"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    track: Track
    player: PlayerSettings

    @classmethod
    def of(cls, kind: EventKind, snapshot: Snapshot) -> "Event":
        return cls(kind=kind, track=snapshot.track, player=snapshot.player)


# ---------- Rendering / covers ----------


@dataclass(frozen=True)
class RenderResult:
    summary: str
    body: str
    timeout: Optional[int]  # seconds; None when persistent
    persistent: bool = False


class CoverKind(Enum):
    EMBEDDED = "embedded"
    EXTERNAL = "external"
    NONE = "none"


@dataclass(frozen=True)
class CoverSource:
    kind: CoverKind = CoverKind.NONE
    image: Optional[Image.Image] = field(default=None, compare=False)
    path: Optional[str] = None

    @classmethod
    def none(cls) -> "CoverSource":
        return cls()

    def __bool__(self) -> bool:
        return self.kind is not CoverKind.NONE


class NotificationSink(Protocol):
    def show(
        self, result: RenderResult, cover: CoverSource, icon: Optional[str]
    ) -> Any: ...
    def update(self, handle: Any, result: RenderResult) -> None: ...
    def close(self, handle: Any) -> None: ...

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

import cmus_notify.logger as log
from cmus_notify.config import Settings
from cmus_notify.cover import track_cover
from cmus_notify.player_types import (
    CoverSource,
    Event,
    EventKind,
    NotificationSink,
    PlayerSettings,
    RenderResult,
    Track,
)
from cmus_notify.template import is_volatile, render

PLAYER_SETTING_KINDS = frozenset(
    {
        EventKind.SHUFFLE_CHANGED,
        EventKind.REPEAT_CHANGED,
        EventKind.AAA_MODE_CHANGED,
        EventKind.VOLUME_CHANGED,
    }
)

CoverResolver = Callable[..., CoverSource]


def build_render_result(event: Event, settings: Settings) -> Optional[RenderResult]:
    """
    Render the notification for one event, or None when it should not be shown.

    Not shown: position changes, player-setting changes with player
    notifications off, and any kind whose body template is empty.
    """
    if event.kind is EventKind.POSITION_CHANGED:
        return None
    if event.kind in PLAYER_SETTING_KINDS and not settings.show_player_notifications:
        return None

    template = settings.template_for(event.kind)
    if template is None or not template.body:
        return None

    persistent = (
        settings.persistent
        or is_volatile(template.summary)
        or is_volatile(template.body)
    )
    return RenderResult(
        summary=render(template.summary, event.track, event.player),
        body=render(template.body, event.track, event.player),
        timeout=None if persistent else template.timeout,
        persistent=persistent,
    )


@dataclass
class PersistentNotification:
    """A shown notification that stays on screen and is re-rendered in place."""

    kind: EventKind
    handle: Any
    summary_template: str
    body_template: str
    summary: str
    body: str
    version: int = 1

    def rerender(self, track: Track, player: PlayerSettings) -> Optional[RenderResult]:
        # None when the text would not change
        summary = render(self.summary_template, track, player)
        body = render(self.body_template, track, player)
        if summary == self.summary and body == self.body:
            return None
        self.summary, self.body = summary, body
        self.version += 1
        return RenderResult(summary=summary, body=body, timeout=None, persistent=True)


class NotificationsHandler:
    """
    Turns events into sink calls.

    Owns the current track cover and the persistent notifications, keyed by
    the event kind that created them. Both are replaced wholesale on a track
    change.
    """

    def __init__(
        self,
        settings: Settings,
        sink: NotificationSink,
        cover_resolver: CoverResolver = track_cover,
    ) -> None:
        self.settings = settings
        self.sink = sink
        self.cover_resolver = cover_resolver
        self.cover = CoverSource.none()
        self.cover_set = False
        self.persistent: Dict[EventKind, PersistentNotification] = {}

    def show_notifications(self, events: Iterable[Event]) -> None:
        for event in events:
            log.debug(f"[EVENT] {event.kind.value}")
            try:
                self.handle_event(event)
            except Exception as e:
                log.error(f"[NOTIFY] failed handling {event.kind.value}: {e!r}")

    def handle_event(self, event: Event) -> None:
        if event.kind is EventKind.TRACK_CHANGED:
            self.dismiss_persistent()
            self.update_cover(event.track, event.player)
        elif event.kind in (EventKind.POSITION_CHANGED, EventKind.STATUS_CHANGED):
            self.refresh_persistent(event.track, event.player)

        result = build_render_result(event, self.settings)
        if result is None:
            return

        if self.settings.show_track_cover and not self.cover_set:
            self.update_cover(event.track, event.player)

        template = self.settings.template_for(event.kind)
        existing = self.persistent.get(event.kind)
        if result.persistent and existing is not None:
            existing.summary_template = template.summary
            existing.body_template = template.body
            update = existing.rerender(event.track, event.player)
            if update is not None:
                self.sink.update(existing.handle, update)
            return

        handle = self.sink.show(result, self.cover, self.settings.notification_static_cover)
        log.info(f"[NOTIFY] {event.kind.value}: {result.summary!r}")

        if result.persistent and handle is not None:
            self.persistent[event.kind] = PersistentNotification(
                kind=event.kind,
                handle=handle,
                summary_template=template.summary,
                body_template=template.body,
                summary=result.summary,
                body=result.body,
            )

    def refresh_persistent(self, track: Track, player: PlayerSettings) -> None:
        for notification in self.persistent.values():
            update = notification.rerender(track, player)
            if update is None:
                continue
            try:
                self.sink.update(notification.handle, update)
            except Exception as e:
                log.error(f"[NOTIFY] update of {notification.kind.value} failed: {e!r}")

    def dismiss_persistent(self) -> None:
        for notification in self.persistent.values():
            try:
                self.sink.close(notification.handle)
            except Exception as e:
                log.error(f"[NOTIFY] close of {notification.kind.value} failed: {e!r}")
        self.persistent.clear()

    def update_cover(self, track: Track, player: PlayerSettings) -> None:
        if not self.settings.show_track_cover:
            self.cover = CoverSource.none()
            self.cover_set = True
            return

        cover_path = None
        if self.settings.cover_path_template:
            cover_path = render(self.settings.cover_path_template, track, player)

        try:
            self.cover = self.cover_resolver(
                track.path,
                track.get_name(),
                self.settings.depth,
                force_use_external_cover=self.settings.force_use_external_cover,
                no_use_external_cover=self.settings.no_use_external_cover,
                cover_path=cover_path,
            )
        except Exception as e:
            log.error(f"[COVER] cover lookup failed for {track.path!r}: {e!r}")
            self.cover = CoverSource.none()
        self.cover_set = True

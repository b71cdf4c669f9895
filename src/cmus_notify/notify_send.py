from __future__ import annotations

import os
import subprocess
import tempfile
from typing import Any, Dict, List, Optional

import cmus_notify.logger as log
from cmus_notify.player_types import CoverKind, CoverSource, RenderResult

NOTIFY_SEND_BIN = "notify-send"
CLOSE_TIMEOUT_MS = 1


class NotifySendError(RuntimeError):
    pass


class NotifySendSink:
    """
    Notification sink backed by the `notify-send` binary (libnotify >= 0.7.9).

    Handles are the integer ids printed by `--print-id`. Updates reuse the id
    via `--replace-id`; closing replaces the notification with one that expires
    after a millisecond.
    """

    def __init__(
        self,
        app_name: str,
        binary: str = NOTIFY_SEND_BIN,
        desktop_entry: str = "cmus",
    ) -> None:
        self.app_name = app_name
        self.binary = binary
        self.desktop_entry = desktop_entry
        self._image_path: Optional[str] = None
        # the image last written; held so identity checks stay valid
        self._image_for: Any = None
        self._icons: Dict[int, Optional[str]] = {}

    def _cover_path(self, cover: CoverSource) -> Optional[str]:
        if cover.kind is CoverKind.NONE or cover.image is None:
            return None
        if cover.kind is CoverKind.EXTERNAL and cover.path:
            return cover.path

        # embedded art needs a file for notify-send; written once per cover
        if self._image_for is not cover.image:
            if self._image_path is None:
                fd, self._image_path = tempfile.mkstemp(prefix="cmus-notify-", suffix=".png")
                os.close(fd)
            cover.image.save(self._image_path, "PNG")
            self._image_for = cover.image
        return self._image_path

    def _command(
        self,
        result: RenderResult,
        icon: Optional[str],
        replace_id: Optional[int] = None,
        timeout_ms: Optional[int] = None,
    ) -> List[str]:
        if timeout_ms is None:
            timeout_ms = 0 if result.timeout is None else result.timeout * 1000
        command = [
            self.binary,
            "--print-id",
            f"--app-name={self.app_name}",
            "--category=music",
            f"--hint=string:desktop-entry:{self.desktop_entry}",
            f"--expire-time={timeout_ms}",
        ]
        if result.persistent:
            command.append("--hint=boolean:resident:true")
        if icon:
            command.append(f"--icon={icon}")
        if replace_id is not None:
            command.append(f"--replace-id={replace_id}")
        command += ["--", result.summary, result.body]
        return command

    def _run(self, command: List[str]) -> Optional[int]:
        try:
            p = subprocess.run(command, check=False, capture_output=True, text=True)
        except OSError as e:
            raise NotifySendError(f"failed to run {self.binary!r}: {e}") from e
        if p.returncode != 0:
            raise NotifySendError(p.stderr.strip() or f"exit status {p.returncode}")
        try:
            return int(p.stdout.strip().splitlines()[-1])
        except (IndexError, ValueError):
            log.debug(f"[NOTIFY-SEND] no notification id in output {p.stdout!r}")
            return None

    def show(
        self, result: RenderResult, cover: CoverSource, icon: Optional[str]
    ) -> Optional[int]:
        image = self._cover_path(cover) or icon
        handle = self._run(self._command(result, image))
        # only persistent notifications are updated or closed later
        if handle is not None and result.persistent:
            self._icons[handle] = image
        return handle

    def update(self, handle: Optional[int], result: RenderResult) -> None:
        if handle is None:
            return
        self._run(self._command(result, self._icons.get(handle), replace_id=handle))

    def close(self, handle: Optional[int]) -> None:
        if handle is None:
            return
        self._icons.pop(handle, None)
        empty = RenderResult(summary=" ", body="", timeout=None)
        self._run(self._command(empty, None, replace_id=handle, timeout_ms=CLOSE_TIMEOUT_MS))

    def cleanup(self) -> None:
        """Remove the temporary cover file, if one was written."""
        if self._image_path is None:
            return
        try:
            os.remove(self._image_path)
        except FileNotFoundError:
            pass
        self._image_path = None
        self._image_for = None

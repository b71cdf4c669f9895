from __future__ import annotations

import os
import re
from io import BytesIO
from typing import Optional, Pattern, Tuple

import music_tag
from mutagen import MutagenError
from PIL import Image, UnidentifiedImageError

import cmus_notify.logger as log
from cmus_notify.player_types import CoverKind, CoverSource

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif")
REGEX_PREFIX = "r#"


def _decode_image(data: bytes) -> Image.Image:
    image = Image.open(BytesIO(data))
    image.load()
    return image


def get_embedded_art(track_path: str) -> Optional[Image.Image]:
    """
    Return the first picture embedded in the track's tags, decoded.

    Returns None when the container has no picture. Raises on unreadable
    files or undecodable image data; callers treat that as "no embedded art".
    """
    f = music_tag.load_file(track_path)
    if f is None:
        return None
    artwork = f["artwork"]
    if not artwork:
        return None
    picture = artwork.first
    data = getattr(picture, "data", None)
    if not data:
        return None
    return _decode_image(data)


def _glob_to_regex(glob: str) -> str:
    # only `*` is special
    return "^" + ".*".join(re.escape(part) for part in glob.split("*")) + "$"


def default_cover_pattern(track_name: str) -> Pattern[str]:
    extensions = "|".join(IMAGE_EXTENSIONS)
    return re.compile(rf"({re.escape(track_name)}).*\.({extensions})$")


def build_cover_pattern(
    track_path: str,
    track_name: str,
    cover_path: Optional[str] = None,
) -> Tuple[str, Pattern[str]]:
    """
    Work out where to start searching and which file names count as a cover.

    Without `cover_path` the search starts at the track itself and matches
    "<track name>...<image extension>". With a rendered `cover_path`, relative
    paths are anchored at the track's directory and the last component is the
    file-name pattern: `r#<regex>` for a raw regex, otherwise a glob where only
    `*` is special. A path ending in a separator names just the directory.

    Raises re.error for an invalid user regex.
    """
    if not cover_path:
        return track_path, default_cover_pattern(track_name)

    if not os.path.isabs(cover_path):
        cover_path = os.path.join(os.path.dirname(track_path), cover_path)

    directory, name_pattern = os.path.split(cover_path)
    if not name_pattern:
        # a bare directory ("covers/{album}/") searches it with the default pattern
        return directory, default_cover_pattern(track_name)
    if name_pattern.startswith(REGEX_PREFIX):
        pattern = re.compile(name_pattern[len(REGEX_PREFIX):])
    else:
        pattern = re.compile(_glob_to_regex(name_pattern))
    return directory, pattern


def search(search_directory: str, pattern: Pattern[str]) -> Optional[str]:
    """First regular file in `search_directory` whose name matches, in scandir order."""
    with os.scandir(search_directory) as entries:
        for entry in entries:
            try:
                if not entry.is_file():
                    continue
            except OSError:
                continue
            if pattern.search(entry.name):
                return entry.path
    return None


def search_for(
    search_directory: str, max_depth: int, pattern: Pattern[str]
) -> Optional[str]:
    """
    Bounded upward search: look in `search_directory` (its parent when it is
    a file), then walk up one parent per remaining depth unit.

    Returns the first match, or None when depth runs out or the filesystem
    root is passed. OSError from an unreadable directory propagates.
    """
    directory = os.path.abspath(search_directory)
    if os.path.isfile(directory):
        log.debug(f"[COVER] {directory} is a file, searching its directory")
        directory = os.path.dirname(directory)

    while True:
        found = search(directory, pattern)
        if found is not None:
            return found
        if max_depth <= 0:
            return None

        parent = os.path.dirname(directory)
        if parent == directory:
            return None
        log.debug(
            f"[COVER] nothing matching {pattern.pattern!r} in {directory}, "
            f"trying parent (depth left {max_depth})"
        )
        max_depth -= 1
        directory = parent


def track_cover(
    track_path: str,
    track_name: str,
    max_depth: int,
    force_use_external_cover: bool = False,
    no_use_external_cover: bool = False,
    cover_path: Optional[str] = None,
) -> CoverSource:
    """
    Resolve the cover for a track.

      - embedded art wins unless `force_use_external_cover`
      - then, unless `no_use_external_cover`, a bounded search for an image file
      - every read/decode/filesystem failure degrades to CoverSource.none()
    """
    if not force_use_external_cover:
        try:
            image = get_embedded_art(track_path)
        except (
            MutagenError,
            NotImplementedError,
            OSError,
            ValueError,
            KeyError,
            Image.DecompressionBombError,
        ) as e:
            log.debug(f"[COVER] no embedded art for {os.path.basename(track_path)}: {e!r}")
            image = None
        if image is not None:
            log.debug(f"[COVER] using embedded art of {os.path.basename(track_path)}")
            return CoverSource(kind=CoverKind.EMBEDDED, image=image)

    if no_use_external_cover:
        return CoverSource.none()

    try:
        directory, pattern = build_cover_pattern(track_path, track_name, cover_path)
    except re.error as e:
        log.warning(f"[COVER] invalid cover pattern {cover_path!r}: {e}")
        return CoverSource.none()

    try:
        found = search_for(directory, max_depth, pattern)
    except OSError as e:
        log.debug(f"[COVER] search failed in {directory}: {e!r}")
        return CoverSource.none()

    if found is None:
        log.debug(f"[COVER] no external cover for {track_name!r}")
        return CoverSource.none()

    try:
        with open(found, "rb") as fh:
            image = _decode_image(fh.read())
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as e:
        log.warning(f"[COVER] could not open {found}: {e!r}")
        return CoverSource.none()

    log.info(f"[COVER] using external cover {found}")
    return CoverSource(kind=CoverKind.EXTERNAL, image=image, path=found)

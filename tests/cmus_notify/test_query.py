import subprocess

import pytest
from cmus_notify import query
from cmus_notify.errors import (
    CmusUnavailableError,
    CorruptedResponseError,
    DurationError,
    EmptyPathError,
    NoStatusError,
    PositionError,
    UnknownAAAModeError,
    UnknownShuffleModeError,
    UnknownStatusError,
    VolumeError,
)
from cmus_notify.player_types import AAAMode, Shuffle, TrackStatus, Volume

from conftest import PHOTOGRAPH_PATH

HEADER = "status paused\nfile /music/a.flac\nduration 100\nposition 5\n"

# =====================================================
# parse_snapshot
# =====================================================


def test_parse_snapshot_reads_header_and_every_tag(photograph_response):
    snapshot = query.parse_snapshot(photograph_response)
    track = snapshot.track

    assert track.status is TrackStatus.PLAYING
    assert track.path == PHOTOGRAPH_PATH
    assert track.duration == 284
    assert track.position == 226
    assert track.tags == {
        "artist": "Alex Goot",
        "album": "Alex Goot & Friends, Vol. 3",
        "title": "Photograph",
        "date": "2014",
        "genre": "Pop",
        "discnumber": "1",
        "tracknumber": "8",
        "albumartist": "Alex Goot",
        "replaygain_track_gain": "-9.4 dB",
        "composer": "Chad Kroeger",
        "label": "mudhutdigital.com",
        "publisher": "mudhutdigital.com",
        "bpm": "146",
    }
    assert track.get_tag("comment") is None


def test_parse_snapshot_reads_player_settings(photograph_response):
    player = query.parse_snapshot(photograph_response).player

    assert player.aaa_mode is AAAMode.ARTIST
    assert player.repeat is False
    assert player.repeat_current is False
    assert player.shuffle is Shuffle.TRACKS
    assert player.volume == Volume(left=46, right=46)


def test_parse_snapshot_without_tags_or_settings():
    snapshot = query.parse_snapshot(HEADER)
    assert snapshot.track.tags == {}
    assert snapshot.player.volume == Volume(0, 0)
    assert snapshot.player.shuffle is Shuffle.OFF


def test_parse_snapshot_is_not_the_sentinel(photograph_response):
    assert query.parse_snapshot(photograph_response).sentinel is False


# =====================================================
# header errors
# =====================================================


@pytest.mark.parametrize("raw", ["", "status\n", "statusplaying\n"])
def test_missing_status_line(raw):
    with pytest.raises(NoStatusError):
        query.parse_track(raw)


def test_unknown_status():
    with pytest.raises(UnknownStatusError) as exc:
        query.parse_track("status rewinding\nfile /a.mp3\nduration 1\nposition 0\n")
    assert exc.value.value == "rewinding"


@pytest.mark.parametrize(
    "raw",
    ["status stopped\n", "status stopped\nfile\n", "status stopped\nset aaa_mode all\n"],
)
def test_missing_path(raw):
    with pytest.raises(EmptyPathError):
        query.parse_track(raw)


def test_duration_not_numeric():
    with pytest.raises(DurationError):
        query.parse_track("status playing\nfile /a.mp3\nduration abc\nposition 0\n")


def test_duration_missing():
    with pytest.raises(DurationError):
        query.parse_track("status playing\nfile /a.mp3\n")


def test_position_not_numeric():
    with pytest.raises(PositionError):
        query.parse_track("status playing\nfile /a.mp3\nduration 10\nposition -\n")


def test_negative_position_rejected():
    with pytest.raises(PositionError):
        query.parse_track("status playing\nfile /a.mp3\nduration 10\nposition -3\n")


def test_path_keeps_spaces():
    track = query.parse_track("status playing\nfile /a b/c d.mp3\nduration 1\nposition 0\n")
    assert track.path == "/a b/c d.mp3"


# =====================================================
# tags
# =====================================================


def test_tag_without_value_is_skipped():
    track = query.parse_track(HEADER + "tag artist\ntag title Song\n")
    assert track.tags == {"title": "Song"}


def test_indented_tag_lines_are_accepted():
    tags, rest = query.parse_tags(iter(["    tag artist A B", "  tag title T", "set x y"]))
    assert tags == {"artist": "A B", "title": "T"}
    assert rest == "set x y"


def test_tags_stop_at_first_non_tag_line():
    track = query.parse_track(HEADER + "tag artist A\nstream Radio\ntag title T\n")
    assert track.tags == {"artist": "A"}


# =====================================================
# player settings
# =====================================================


def test_player_settings_booleans_from_literal_true():
    player = query.parse_player_settings(
        ["set repeat true", "set repeat_current yes", "set shuffle albums"]
    )
    assert player.repeat is True
    assert player.repeat_current is False
    assert player.shuffle is Shuffle.ALBUMS


def test_unknown_shuffle_mode():
    with pytest.raises(UnknownShuffleModeError):
        query.parse_player_settings(["set shuffle sometimes"])


def test_unknown_aaa_mode():
    with pytest.raises(UnknownAAAModeError):
        query.parse_player_settings(["set aaa_mode genre"])


@pytest.mark.parametrize("value", ["loud", "101", "-1"])
def test_bad_volume(value):
    with pytest.raises(VolumeError):
        query.parse_player_settings([f"set vol_left {value}"])


def test_unknown_settings_keys_are_ignored():
    player = query.parse_player_settings(
        ["set softvol false", "set replaygain_preamp 0.000000", "set vol_right 12"]
    )
    assert player.volume == Volume(left=0, right=12)


def test_settings_line_without_value_is_corrupted():
    with pytest.raises(CorruptedResponseError):
        query.parse_player_settings(["set repeat"])


def test_protocol_errors_surface_from_parse_snapshot():
    with pytest.raises(UnknownAAAModeError):
        query.parse_snapshot(HEADER + "set aaa_mode everything\n")


# =====================================================
# split_response
# =====================================================


def test_split_response_at_first_set_line(photograph_response):
    track_block, settings_block = query.split_response(photograph_response)
    assert track_block.endswith("tag bpm 146\n")
    assert settings_block.startswith("set aaa_mode artist\n")
    assert track_block + settings_block == photograph_response


def test_split_response_ignores_set_inside_a_tag_value():
    raw = HEADER + "tag title set me free\nset repeat true\n"
    track_block, settings_block = query.split_response(raw)
    assert "set me free" in track_block
    assert settings_block == "set repeat true\n"


def test_split_response_without_settings():
    assert query.split_response(HEADER) == (HEADER, "")


# =====================================================
# get_name
# =====================================================


def test_get_name_prefers_title(photograph_response):
    assert query.parse_snapshot(photograph_response).track.get_name() == "Photograph"


def test_get_name_falls_back_to_file_name():
    track = query.parse_track(HEADER)
    assert track.get_name() == "a"


# =====================================================
# build_query_command / ping_cmus
# =====================================================


def test_build_query_command_default():
    assert query.build_query_command("cmus-remote") == ["cmus-remote", "-Q"]


def test_build_query_command_with_socket():
    assert query.build_query_command("cmus-remote", "/tmp/cmus-socket") == [
        "cmus-remote",
        "--server",
        "/tmp/cmus-socket",
        "-Q",
    ]


def test_build_query_command_with_socket_and_password():
    assert query.build_query_command("cmus-remote", "/tmp/cmus-socket", "pass") == [
        "cmus-remote",
        "--server",
        "/tmp/cmus-socket",
        "--passwd",
        "pass",
        "-Q",
    ]


def test_build_query_command_with_run_command():
    assert query.build_query_command("flatpak run io.github.cmus.cmus") == [
        "flatpak",
        "run",
        "io.github.cmus.cmus",
        "-Q",
    ]


def test_ping_cmus_returns_stdout(monkeypatch):
    monkeypatch.setattr(
        "cmus_notify.query.subprocess.run",
        lambda cmd, **kw: subprocess.CompletedProcess(cmd, 0, b"status stopped\n", b""),
    )
    assert query.ping_cmus(["cmus-remote", "-Q"]) == "status stopped\n"


def test_ping_cmus_nonzero_exit(monkeypatch):
    monkeypatch.setattr(
        "cmus_notify.query.subprocess.run",
        lambda cmd, **kw: subprocess.CompletedProcess(
            cmd, 1, b"", b"cmus-remote: cmus is not running\n"
        ),
    )
    with pytest.raises(CmusUnavailableError, match="not running"):
        query.ping_cmus(["cmus-remote", "-Q"])


def test_ping_cmus_missing_binary(monkeypatch):
    def boom(cmd, **kw):
        raise FileNotFoundError("no such file")

    monkeypatch.setattr("cmus_notify.query.subprocess.run", boom)
    with pytest.raises(CmusUnavailableError):
        query.ping_cmus(["cmus-remote", "-Q"])


def test_ping_cmus_undecodable_output(monkeypatch):
    monkeypatch.setattr(
        "cmus_notify.query.subprocess.run",
        lambda cmd, **kw: subprocess.CompletedProcess(cmd, 0, b"\xff\xfe", b""),
    )
    with pytest.raises(CmusUnavailableError):
        query.ping_cmus(["cmus-remote", "-Q"])


def test_parse_snapshot_without_current_file():
    with pytest.raises(EmptyPathError):
        query.parse_snapshot("status stopped\nset aaa_mode all\nset repeat false\n")

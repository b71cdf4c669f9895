import pytest

from cmus_notify.player_types import (
    AAAMode,
    PlayerSettings,
    Shuffle,
    Snapshot,
    Track,
    TrackStatus,
    Volume,
)

PHOTOGRAPH_PATH = (
    "/mnt/Data/Music/FLAC/Alex Goot/Alex Goot - Alex Goot & Friends, Vol. 3/"
    "08 - Photograph.mp3"
)

PHOTOGRAPH_RESPONSE = f"""status playing
file {PHOTOGRAPH_PATH}
duration 284
position 226
tag artist Alex Goot
tag album Alex Goot & Friends, Vol. 3
tag title Photograph
tag date 2014
tag genre Pop
tag discnumber 1
tag tracknumber 8
tag albumartist Alex Goot
tag replaygain_track_gain -9.4 dB
tag composer Chad Kroeger
tag label mudhutdigital.com
tag publisher mudhutdigital.com
tag bpm 146
set aaa_mode artist
set continue true
set play_library true
set play_sorted false
set replaygain disabled
set replaygain_limit true
set replaygain_preamp 0.000000
set repeat false
set repeat_current false
set shuffle tracks
set softvol false
set vol_left 46
set vol_right 46
"""


@pytest.fixture
def photograph_response():
    return PHOTOGRAPH_RESPONSE


@pytest.fixture
def photograph_track():
    return Track(
        status=TrackStatus.PLAYING,
        path=PHOTOGRAPH_PATH,
        tags={
            "artist": "Alex Goot",
            "album": "Alex Goot & Friends, Vol. 3",
            "title": "Photograph",
            "date": "2014",
            "tracknumber": "8",
            "discnumber": "1",
        },
        duration=284,
        position=226,
    )


@pytest.fixture
def player_settings():
    return PlayerSettings(
        repeat=False,
        repeat_current=False,
        shuffle=Shuffle.TRACKS,
        aaa_mode=AAAMode.ARTIST,
        volume=Volume(left=46, right=46),
    )


@pytest.fixture
def snapshot(photograph_track, player_settings):
    return Snapshot(track=photograph_track, player=player_settings)

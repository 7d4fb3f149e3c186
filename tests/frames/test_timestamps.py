import pytest

from blueprint_capture.frames.timestamps import (
    FrameLimitExceededError,
    frame_id_for,
    parse_pts_times,
    resolve_frame_times,
)

SHOWINFO_STDERR = """\
Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'walkthrough.mov':
  Duration: 00:00:01.00, start: 0.000000, bitrate: 9000 kb/s
[Parsed_showinfo_2 @ 0x55d0c8] config in time_base: 1/5, frame_rate: 5/1
[Parsed_showinfo_2 @ 0x55d0c8] n:   0 pts:      0 pts_time:0       duration:      1
[Parsed_showinfo_2 @ 0x55d0c8] n:   1 pts:      1 pts_time:0.2     duration:      1
[Parsed_showinfo_2 @ 0x55d0c8] n:   2 pts:      2 pts_time:0.4     duration:      1
frame=    3 fps=0.0 q=2.0 Lsize=N/A time=00:00:00.60 bitrate=N/A speed=5.1x
"""


def test_parse_pts_times_reads_showinfo_lines_in_order():
    assert parse_pts_times(SHOWINFO_STDERR) == [0.0, 0.2, 0.4]


def test_parse_pts_times_ignores_lines_without_showinfo():
    stderr = "pts_time:1.5 from some other filter\n[Parsed_showinfo_1 @ 0x1] pts_time:2.5"
    assert parse_pts_times(stderr) == [2.5]


def test_parse_pts_times_handles_crlf():
    stderr = "[Parsed_showinfo_2 @ 0x1] n:0 pts_time:1.25\r\n[Parsed_showinfo_2 @ 0x1] n:1 pts_time:1.45\r\n"
    assert parse_pts_times(stderr) == [1.25, 1.45]


def test_resolve_frame_times_uses_recovered_values():
    assert resolve_frame_times(3, [0.0, 0.2, 0.4], fps=5) == [0.0, 0.2, 0.4]


def test_resolve_frame_times_falls_back_to_even_spacing():
    times = resolve_frame_times(5, [0.0, 0.2], fps=5)

    assert times == [0.0, 0.2, 0.4, 0.6, 0.8]
    assert len(times) == 5


def test_resolve_frame_times_rounds_to_six_decimals():
    assert resolve_frame_times(1, [0.12345678], fps=5) == [0.123457]


def test_resolve_frame_times_ignores_surplus_timestamps():
    assert resolve_frame_times(2, [0.0, 0.2, 0.4, 0.6], fps=5) == [0.0, 0.2]


def test_resolve_frame_times_rejects_non_positive_fps():
    with pytest.raises(ValueError):
        resolve_frame_times(1, [], fps=0)


def test_frame_id_is_one_based_and_zero_padded():
    assert frame_id_for(0) == "000001"
    assert frame_id_for(41) == "000042"
    assert frame_id_for(999_998) == "999999"


def test_frame_id_overflow_is_an_error():
    with pytest.raises(FrameLimitExceededError):
        frame_id_for(999_999)

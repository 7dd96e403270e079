import pytest

from railbus.cab import (
    ALL_SCREENS,
    CURSOR_DISABLE,
    CURSOR_ENABLE,
    CURSOR_NONE,
    FLAG_ASK_QUESTION,
    SCREEN_BOTTOM_LEFT,
    SCREEN_BOTTOM_RIGHT,
    SCREEN_TOP_LEFT,
    SCREEN_TOP_RIGHT,
    Cab,
    CabDirection,
)
from railbus.commands import CommandType


def _clean_cab(number=3):
    cab = Cab(number)
    cab.dirty_screens = 0
    return cab


def _collect(cab, times=1):
    written = []
    for _ in range(times):
        cab.output_dirty_screens(written.append)
    return written


def test_new_cab_defaults():
    cab = Cab(7)
    assert cab.number == 7
    assert cab.loco_number == 44
    assert cab.direction is CabDirection.FORWARD
    assert cab.speed & 0x7F == 0
    assert cab.get_function(1)
    assert not cab.get_function(0)
    assert cab.dirty_screens == ALL_SCREENS
    assert cab.command.command == CommandType.NONE
    assert cab.new_cursor_position == CURSOR_NONE
    assert cab.top_row[:4] == b"LOC:"
    assert cab.bottom_row[:4] == b"FWD:"


def test_dirty_screens_sent_in_order():
    cab = Cab(1)
    frames = _collect(cab, 4)
    assert [frame[0] for frame in frames] == [0xC0, 0xC2, 0xC1, 0xC3]
    assert all(len(frame) == 9 for frame in frames)
    assert frames[0][1:] == bytes(cab.top_row[:8])
    assert frames[1][1:] == bytes(cab.bottom_row[:8])
    assert frames[2][1:] == bytes(cab.top_row[8:])
    assert frames[3][1:] == bytes(cab.bottom_row[8:])
    assert cab.dirty_screens & ALL_SCREENS == 0
    assert _collect(cab) == []


def test_loco_number_clamped():
    cab = _clean_cab()
    cab.set_loco_number(12345)
    assert cab.loco_number == 9999
    assert cab.top_row[:8] == b"LOC:9999"
    assert cab.dirty_screens & SCREEN_TOP_LEFT


def test_same_loco_number_does_not_dirty():
    cab = _clean_cab()
    cab.set_loco_number(cab.loco_number)
    assert cab.dirty_screens == 0


def test_loco_number_shown_right_aligned():
    cab = _clean_cab()
    cab.set_loco_number(1234)
    assert cab.top_row[:8] == b"LOC:1234"
    assert cab.loco_number == 1234


def test_speed_keeps_direction():
    cab = _clean_cab()
    cab.set_loco_speed(200)
    assert cab.speed & 0x7F == 200 & 0x7F
    assert cab.direction is CabDirection.FORWARD
    assert cab.bottom_row[:4] == b"FWD:"
    assert cab.bottom_row[8] == ord(" ")
    assert cab.dirty_screens & SCREEN_BOTTOM_LEFT


def test_direction_change_keeps_speed():
    cab = _clean_cab()
    cab.set_loco_speed(12)
    cab.set_direction(CabDirection.REVERSE)
    assert cab.direction is CabDirection.REVERSE
    assert cab.speed & 0x80 == 0
    assert cab.speed & 0x7F == 12
    assert cab.bottom_row[:4] == b"REV:"
    cab.set_direction(CabDirection.FORWARD)
    assert cab.speed & 0x7F == 12
    assert cab.bottom_row[:4] == b"FWD:"


@pytest.mark.parametrize("number", [0, 2, 4, 6])
def test_function_round_trip(number):
    cab = _clean_cab()
    cab.set_function(number, True)
    assert cab.get_function(number)
    assert cab.dirty_screens & SCREEN_BOTTOM_RIGHT
    expected = "L" if number == 0 else str(number)
    assert cab.bottom_row[9 + number] == ord(expected)
    cab.set_function(number, False)
    assert not cab.get_function(number)
    assert cab.bottom_row[9 + number] == ord("-")


def test_high_function_not_displayed():
    cab = _clean_cab()
    before = bytes(cab.bottom_row)
    cab.set_function(9, True)
    assert cab.get_function(9)
    assert bytes(cab.bottom_row) == before


def test_set_time_default_text():
    cab = _clean_cab()
    cab.set_time(5, 55, True)
    assert cab.top_row[8:] == b" 5:55AM"
    assert cab.dirty_screens == SCREEN_TOP_RIGHT


def test_set_time_pm_suffix():
    cab = _clean_cab()
    cab.set_time(11, 7, False)
    assert cab.top_row[14:] == b"PM"
    assert len(cab.top_row) == 16


def test_cursor_move_then_enable():
    cab = _clean_cab()
    cab.new_cursor_position = 16
    assert _collect(cab) == [bytes((0xC8, 0xC0))]
    assert cab.new_cursor_position == CURSOR_ENABLE
    assert _collect(cab) == [bytes((0xCF,))]
    assert cab.new_cursor_position == CURSOR_NONE
    assert _collect(cab) == []


def test_cursor_disable():
    cab = _clean_cab()
    cab.new_cursor_position = CURSOR_DISABLE
    assert _collect(cab) == [bytes((0xCE,))]
    assert cab.new_cursor_position == CURSOR_NONE


def test_dirty_screen_before_cursor():
    cab = _clean_cab()
    cab.new_cursor_position = 3
    cab.dirty_screens = SCREEN_TOP_RIGHT
    frames = _collect(cab)
    assert frames[0][0] == 0xC1
    assert cab.new_cursor_position == 3


def test_ask_question_sets_flag():
    cab = _clean_cab()
    cab.ask_question("STEAL?")
    assert cab.dirty_screens & FLAG_ASK_QUESTION
    assert cab.bottom_row[:6] == b"STEAL?"
    assert cab.bottom_row[6:] == b" " * 10
    assert cab.dirty_screens & (SCREEN_BOTTOM_LEFT | SCREEN_BOTTOM_RIGHT) == (
        SCREEN_BOTTOM_LEFT | SCREEN_BOTTOM_RIGHT
    )


def test_too_long_messages_ignored():
    cab = _clean_cab()
    before = bytes(cab.bottom_row)
    cab.ask_question("X" * 17)
    cab.user_message("Y" * 17)
    assert bytes(cab.bottom_row) == before
    assert cab.dirty_screens == 0


def test_user_message_without_question_flag():
    cab = _clean_cab()
    cab.user_message("GOOD SELECTION")
    assert cab.bottom_row[:14] == b"GOOD SELECTION"
    assert not cab.dirty_screens & FLAG_ASK_QUESTION


def test_full_length_message():
    cab = _clean_cab()
    cab.user_message("1=N(ON) 2=R(OFF)")
    assert bytes(cab.bottom_row) == b"1=N(ON) 2=R(OFF)"


def test_reset_restores_display():
    cab = _clean_cab()
    cab.set_loco_speed(9)
    cab.set_function(0, True)
    normal_bottom = bytes(cab.bottom_row)
    cab.user_message("ENTER LOCO:")
    cab.dirty_screens = 0
    cab.reset()
    assert bytes(cab.bottom_row) == normal_bottom
    assert cab.top_row[:4] == b"LOC:"
    assert cab.top_row[7] == ord(" ")
    expected = SCREEN_TOP_LEFT | SCREEN_BOTTOM_LEFT | SCREEN_BOTTOM_RIGHT
    assert cab.dirty_screens == expected


def test_reset_keeps_time():
    cab = _clean_cab()
    time_text = bytes(cab.top_row[8:])
    cab.reset()
    assert bytes(cab.top_row[8:]) == time_text
    assert not cab.dirty_screens & SCREEN_TOP_RIGHT
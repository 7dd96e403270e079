"""Interpretation of key presses reported by a cab."""

from __future__ import annotations

import logging

from railbus.cab import (
    ALL_SCREENS,
    COMMAND_STATION_START_BYTE,
    CURSOR_DISABLE,
    FLAG_ASK_QUESTION,
    FLAG_SELECTING_ACCY,
    FLAG_SELECTING_ACCY_DIR,
    FLAG_SELECTING_LOCO,
    SCREEN_BOTTOM_LEFT,
    SCREEN_BOTTOM_RIGHT,
    SCREEN_TOP_LEFT,
    STATE_FLAGS,
    Cab,
    CabDirection,
    WriteFn,
)
from railbus.commands import CommandType, Key, SwitchPosition

_log = logging.getLogger(__name__)

_PRINT_CHAR_FORWARD = 0x0A
_ENTRY_CURSOR_POSITION = 16 + 12
_MAX_SPEED = 127
_FAST_SPEED_STEP = 5
_HORN_FUNCTION = 2
_BELL_FUNCTION = 1


def _digit(key: int) -> int | None:
    if Key.KEY_0 <= key <= Key.KEY_9:
        return key - Key.KEY_0
    return None


def _print_char(write: WriteFn, char: str) -> None:
    write(bytes((COMMAND_STATION_START_BYTE | _PRINT_CHAR_FORWARD, ord(char))))


def _append_digit(cab: Cab, digit: int) -> None:
    cab.current_selecting_number = (cab.current_selecting_number * 10 + digit) & 0xFFFF


def _handle_select_loco(cab: Cab, write: WriteFn, key: int) -> bool:
    if key == Key.SELECT_LOCO:
        cab.current_selecting_number = 0
        cab.command.long_address = True
        cab.bottom_row[0:16] = b"ENTER LOCO:     "
        cab.dirty_screens |= SCREEN_BOTTOM_LEFT | SCREEN_BOTTOM_RIGHT | FLAG_SELECTING_LOCO
        cab.new_cursor_position = _ENTRY_CURSOR_POSITION
        return True

    if not cab.dirty_screens & FLAG_SELECTING_LOCO:
        return False
    if cab.new_cursor_position >= 0:
        return False

    digit = _digit(key)
    if digit is not None:
        _print_char(write, str(digit))
        if digit == 0 and cab.current_selecting_number == 0:
            # A leading zero selects a short address.
            cab.command.long_address = False
        else:
            _append_digit(cab, digit)
    elif key == Key.ENTER:
        if cab.current_selecting_number != 0:
            cab.command.command = CommandType.SEL_LOCO
            cab.command.address = cab.current_selecting_number
        else:
            cab.command.command = CommandType.UNSELECT_LOCO
        cab.dirty_screens &= ~FLAG_SELECTING_LOCO & 0xFF
        cab.reset()
        cab.new_cursor_position = CURSOR_DISABLE
    return True


def _handle_speed(cab: Cab, key: int) -> None:
    current = cab.speed & 0x7F
    if key == Key.STEP_FASTER:
        if current != _MAX_SPEED:
            cab.command.command = CommandType.SPEED
            cab.command.speed = current + 1
    elif key == Key.STEP_SLOWER:
        if current != 0:
            cab.command.command = CommandType.SPEED
            cab.command.speed = current - 1
    elif key == Key.SPEED_INC_FAST:
        if current != _MAX_SPEED:
            cab.command.command = CommandType.SPEED
            cab.command.speed = min(current + _FAST_SPEED_STEP, _MAX_SPEED) & 0x7F
    elif key == Key.SPEED_DEC_FAST:
        if current != 0:
            cab.command.command = CommandType.SPEED
            cab.command.speed = max(current - _FAST_SPEED_STEP, 0) & 0x7F


def _handle_select_accy(cab: Cab, write: WriteFn, key: int) -> bool:
    if key == Key.SEL_ACCY and not cab.dirty_screens & FLAG_SELECTING_ACCY:
        cab.top_row[0:8] = b"CONTROL "
        cab.bottom_row[0:16] = f"ACC NUMBER: {0:04d}".encode("ascii")
        cab.dirty_screens |= (
            FLAG_SELECTING_ACCY | SCREEN_BOTTOM_LEFT | SCREEN_TOP_LEFT | SCREEN_BOTTOM_RIGHT
        )
        cab.new_cursor_position = _ENTRY_CURSOR_POSITION
        cab.current_selecting_number = 0
        return True

    if not cab.dirty_screens & FLAG_SELECTING_ACCY:
        return False

    digit = _digit(key)
    if digit is not None:
        _print_char(write, str(digit))
        _append_digit(cab, digit)
    elif key == Key.ENTER:
        label = f"ACC:{cab.current_selecting_number:04d}".encode("ascii")[:8]
        cab.top_row[0:8] = label.ljust(8)
        cab.bottom_row[0:16] = b"1=N(ON) 2=R(OFF)"
        cab.dirty_screens &= ~FLAG_SELECTING_ACCY & 0xFF
        cab.dirty_screens |= (
            FLAG_SELECTING_ACCY_DIR | SCREEN_BOTTOM_LEFT | SCREEN_TOP_LEFT | SCREEN_BOTTOM_RIGHT
        )
        cab.new_cursor_position = CURSOR_DISABLE
    return True


def _handle_select_accy_dir(cab: Cab, key: int) -> bool:
    if not cab.dirty_screens & FLAG_SELECTING_ACCY_DIR:
        return False

    positions = {Key.KEY_1: SwitchPosition.NORMAL, Key.KEY_2: SwitchPosition.REVERSE}
    position = positions.get(key)
    if position is not None:
        cab.dirty_screens &= ~FLAG_SELECTING_ACCY_DIR & 0xFF
        cab.command.command = CommandType.SWITCH
        cab.command.switch_number = cab.current_selecting_number
        cab.command.switch_position = position
        cab.reset()
    return True


def _handle_number_key(cab: Cab, key: int) -> bool:
    digit = _digit(key)
    if digit is None:
        return False

    if digit in (0, 1) and cab.dirty_screens & FLAG_ASK_QUESTION:
        cab.dirty_screens &= ~FLAG_ASK_QUESTION & 0xFF
        cab.reset()
        cab.command.command = CommandType.RESPONSE
        cab.command.response = digit == 1
        return True

    cab.command.command = CommandType.FUNCTION
    cab.command.function_on = not cab.get_function(digit)
    cab.command.function_number = digit
    return True


def process_button_press(cab: Cab, write: WriteFn, key: int) -> None:
    """Update ``cab`` for a key it reported; screen echoes go through ``write``.

    Any resulting request is left in ``cab.command``.
    """
    if key == Key.PROGRAM:
        # Acts as escape: abandon whatever is being entered.
        if cab.dirty_screens & STATE_FLAGS:
            cab.reset()
            cab.new_cursor_position = CURSOR_DISABLE
            cab.dirty_screens = ALL_SCREENS
        return

    if _handle_select_loco(cab, write, key):
        return
    _handle_speed(cab, key)
    if _handle_select_accy(cab, write, key):
        return
    if _handle_select_accy_dir(cab, key):
        return
    if _handle_number_key(cab, key):
        return

    _log.debug("key is 0x%02X", key)

    command = cab.command
    if key == Key.REPEAT_SCREEN:
        cab.dirty_screens = ALL_SCREENS
    elif key == Key.ENTER:
        cab.reset()
    elif key == Key.DIRECTION:
        command.command = CommandType.DIRECTION
        if cab.direction == CabDirection.FORWARD:
            command.direction = CabDirection.REVERSE
        else:
            command.direction = CabDirection.FORWARD
    elif key == Key.ESTOP:
        command.command = CommandType.ESTOP
    elif key == Key.HORN:
        command.command = CommandType.FUNCTION
        command.function_on = True
        command.function_number = _HORN_FUNCTION
    elif key == Key.HORN_RELEASE:
        command.command = CommandType.FUNCTION
        command.function_on = False
        command.function_number = _HORN_FUNCTION
    elif key == Key.BELL:
        command.command = CommandType.FUNCTION
        command.function_on = not cab.get_function(_BELL_FUNCTION)
        command.function_number = _BELL_FUNCTION
"""State and display of a single cab (handheld throttle) on the cab bus."""

from __future__ import annotations

import enum
from typing import Any, Callable

from railbus.commands import CabCommand

WriteFn = Callable[[bytes], None]

# Lower four bits of ``Cab.dirty_screens``: which LCD quarters need resending.
SCREEN_BOTTOM_RIGHT = 0x01
SCREEN_TOP_RIGHT = 0x02
SCREEN_BOTTOM_LEFT = 0x04
SCREEN_TOP_LEFT = 0x08
ALL_SCREENS = 0x0F

# Upper four bits of ``Cab.dirty_screens``: what the user is in the middle of.
FLAG_SELECTING_ACCY_DIR = 0x10
FLAG_ASK_QUESTION = 0x20
FLAG_SELECTING_LOCO = 0x40
FLAG_SELECTING_ACCY = 0x80
STATE_FLAGS = 0xF0

# Special values of ``Cab.new_cursor_position``; values >= 0 are LCD locations.
CURSOR_NONE = -1
CURSOR_ENABLE = -2
CURSOR_DISABLE = -3

MAX_LOCO_NUMBER = 9999
MESSAGE_LENGTH = 16

COMMAND_STATION_START_BYTE = 0xC0
_TOP_LEFT_LCD = 0x00
_TOP_RIGHT_LCD = 0x01
_BOTTOM_LEFT_LCD = 0x02
_BOTTOM_RIGHT_LCD = 0x03
_MOVE_LCD_CURSOR = 0x08
_CURSOR_OFF = 0x0E
_CURSOR_ON = 0x0F

_DIRECTION_BIT = 0x80
_SPEED_MASK = 0x7F
_DISPLAYED_FUNCTIONS = 7


class CabDirection(enum.IntEnum):
    """Direction of travel shown on a cab."""

    FORWARD = 0
    REVERSE = 1


def _text(value: str, width: int) -> bytes:
    return value.encode("ascii", errors="replace")[:width]


class Cab:
    """One cab on the bus: what its LCD shows and the last command it sent.

    ``top_row`` and ``bottom_row`` hold the two 16-character LCD lines.
    ``speed`` keeps the speed step in its lower seven bits and the direction
    (set = forward) in its top bit.
    """

    def __init__(self, number: int) -> None:
        self.number = number
        self.speed = 0
        self.loco_number = 0
        self.functions = 0
        self.dirty_screens = 0
        self.top_row = bytearray(16)
        self.bottom_row = bytearray(16)
        self.command = CabCommand()
        self.last_ping = 0
        self.new_cursor_position = CURSOR_NONE
        self.current_selecting_number = 0
        self.user_data: Any = None

        self.set_loco_number(44)
        self.set_loco_speed(0)
        self.set_time(5, 55, True)
        self.set_function(1, True)
        self.set_direction(CabDirection.FORWARD)
        self.dirty_screens = ALL_SCREENS

    @property
    def direction(self) -> CabDirection:
        """The direction currently displayed."""
        if self.speed & _DIRECTION_BIT:
            return CabDirection.FORWARD
        return CabDirection.REVERSE

    def _speed_text(self) -> bytes:
        label = "FWD" if self.speed & _DIRECTION_BIT else "REV"
        return _text(f"{label}:{self.speed & _SPEED_MASK:<4d}", 8)

    def _draw_functions(self) -> None:
        for bit in range(_DISPLAYED_FUNCTIONS):
            if self.functions & (1 << bit):
                char = "L" if bit == 0 else str(bit)
            else:
                char = "-"
            self.bottom_row[bit + 9] = ord(char)

    def set_loco_number(self, number: int) -> None:
        """Show a locomotive number (clamped to 9999)."""
        number = min(number, MAX_LOCO_NUMBER)
        if self.loco_number != number:
            self.loco_number = number & 0xFFFF
            self.top_row[0:8] = _text(f"LOC:{number:4d}", 8)
            self.dirty_screens |= SCREEN_TOP_LEFT

    def set_loco_speed(self, speed: int) -> None:
        """Show a speed step (0-127), keeping the current direction."""
        self.speed = (self.speed & _DIRECTION_BIT) | (speed & _SPEED_MASK)
        self.bottom_row[0:8] = self._speed_text()
        self.bottom_row[8] = ord(" ")
        self.dirty_screens |= SCREEN_BOTTOM_LEFT

    def set_time(self, hour: int, minute: int, am: bool) -> None:
        """Show the fast-clock time in the top right corner."""
        suffix = "AM" if am else "PM"
        self.top_row[8:16] = _text(f" {hour:2d}:{minute:02d}{suffix}", 8).ljust(8)
        self.dirty_screens |= SCREEN_TOP_RIGHT

    def set_function(self, function_number: int, on: bool) -> None:
        """Turn a function on or off and redraw the function display."""
        mask = (1 << function_number) & 0xFFFF
        if on:
            self.functions |= mask
        else:
            self.functions &= ~mask & 0xFFFF
        self._draw_functions()
        self.dirty_screens |= SCREEN_BOTTOM_RIGHT

    def set_direction(self, direction: CabDirection) -> None:
        """Show a direction of travel."""
        if direction == CabDirection.FORWARD:
            self.speed |= _DIRECTION_BIT
        else:
            self.speed &= ~_DIRECTION_BIT & 0xFF
        self.set_loco_speed(self.speed)

    def get_function(self, function_number: int) -> bool:
        """Whether the given function is on."""
        return bool(self.functions & (1 << function_number))

    def reset(self) -> None:
        """Redraw the normal locomotive display over whatever was shown."""
        self.bottom_row[0:8] = self._speed_text().ljust(8)
        self.bottom_row[8] = ord(" ")
        self._draw_functions()
        self.dirty_screens |= SCREEN_BOTTOM_LEFT | SCREEN_BOTTOM_RIGHT

        self.top_row[0:8] = _text(f"LOC:{self.loco_number:3d}", 8).ljust(8)
        self.top_row[7] = ord(" ")
        self.dirty_screens |= SCREEN_TOP_LEFT

    def output_dirty_screens(self, write: WriteFn) -> None:
        """Send one pending screen update or cursor change through ``write``."""
        if self.dirty_screens & ALL_SCREENS:
            for flag, lcd, row, start in (
                (SCREEN_TOP_LEFT, _TOP_LEFT_LCD, self.top_row, 0),
                (SCREEN_BOTTOM_LEFT, _BOTTOM_LEFT_LCD, self.bottom_row, 0),
                (SCREEN_TOP_RIGHT, _TOP_RIGHT_LCD, self.top_row, 8),
                (SCREEN_BOTTOM_RIGHT, _BOTTOM_RIGHT_LCD, self.bottom_row, 8),
            ):
                if self.dirty_screens & flag:
                    self.dirty_screens &= ~flag & 0xFF
                    header = bytes((COMMAND_STATION_START_BYTE | lcd,))
                    write(header + bytes(row[start : start + 8]))
                    return

        if self.new_cursor_position >= 0:
            location = self.new_cursor_position
            if location < 16:
                target = 0x80 + location
            else:
                target = 0xC0 + location - 16
            write(bytes((COMMAND_STATION_START_BYTE | _MOVE_LCD_CURSOR, target & 0xFF)))
            self.new_cursor_position = CURSOR_ENABLE
            return

        if self.new_cursor_position == CURSOR_ENABLE:
            write(bytes((COMMAND_STATION_START_BYTE | _CURSOR_ON,)))
            self.new_cursor_position = CURSOR_NONE

        if self.new_cursor_position == CURSOR_DISABLE:
            write(bytes((COMMAND_STATION_START_BYTE | _CURSOR_OFF,)))
            self.new_cursor_position = CURSOR_NONE

    def _show_message(self, message: str) -> bool:
        encoded = message.encode("ascii", errors="replace")
        if len(encoded) > MESSAGE_LENGTH:
            return False
        self.bottom_row[0:16] = encoded.ljust(MESSAGE_LENGTH)
        self.dirty_screens |= SCREEN_BOTTOM_LEFT | SCREEN_BOTTOM_RIGHT
        return True

    def ask_question(self, message: str) -> None:
        """Ask a yes/no question on the bottom line.

        Messages longer than 16 characters are ignored.
        """
        encoded = message.encode("ascii", errors="replace")
        if len(encoded) > MESSAGE_LENGTH:
            return
        self.dirty_screens |= FLAG_ASK_QUESTION
        self._show_message(message)

    def user_message(self, message: str) -> None:
        """Show a message on the bottom line.

        Messages longer than 16 characters are ignored.
        """
        self._show_message(message)
"""Commands and key codes exchanged with cabs on the cab bus."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class CommandType(enum.IntEnum):
    """Kinds of command a cab can issue."""

    NONE = 0
    SEL_LOCO = 1
    SWITCH = 2
    MACRO = 3
    RESPONSE = 4
    SPEED = 5
    DIRECTION = 6
    ESTOP = 7
    FUNCTION = 8
    UNSELECT_LOCO = 9


class SwitchPosition(enum.IntEnum):
    """Requested turnout position."""

    NORMAL = 1
    REVERSE = 2


class Key(enum.IntEnum):
    """Key codes a cab reports in answer to a ping."""

    ENTER = 0x40
    PROGRAM = 0x41
    RECALL = 0x42
    DIRECTION = 0x43
    CONSIST = 0x44
    ADD_LOCO_CONSIST = 0x45
    DEL_LOCO_CONSIST = 0x46
    KILL_CONSIST = 0x47
    SELECT_LOCO = 0x48
    HORN = 0x49
    STEP_FASTER = 0x4A
    STEP_SLOWER = 0x4B
    ESTOP = 0x4C
    BELL = 0x4D
    SEL_ACCY = 0x4E
    KEY_0 = 0x50
    KEY_1 = 0x51
    KEY_2 = 0x52
    KEY_3 = 0x53
    KEY_4 = 0x54
    KEY_5 = 0x55
    KEY_6 = 0x56
    KEY_7 = 0x57
    KEY_8 = 0x58
    KEY_9 = 0x59
    SPEED_INC_FAST = 0x5A
    SPEED_DEC_FAST = 0x5B
    SELECT_MACRO = 0x5C
    SPEED_STEP_CHANGE = 0x5D
    BRAKE = 0x5E
    HORN_RELEASE = 0x5F
    OPTION = 0x69
    NO_KEY = 0x7D
    REPEAT_SCREEN = 0x7E


@dataclass
class CabCommand:
    """The latest command from a cab and its arguments.

    Only the fields that belong to ``command`` are meaningful.
    """

    command: CommandType = CommandType.NONE
    long_address: bool = False
    address: int = 0
    speed: int = 0
    response: bool = False
    direction: int = 0
    function_number: int = 0
    function_on: bool = False
    switch_number: int = 0
    switch_position: SwitchPosition = SwitchPosition.NORMAL

    def clear(self) -> None:
        """Mark the command as consumed; argument fields keep their values."""
        self.command = CommandType.NONE


_COMMAND_NAMES = {
    CommandType.NONE: "CabCommandNone",
    CommandType.SEL_LOCO: "CabCommandSelectLoco",
    CommandType.SWITCH: "CabCommandSwitch",
    CommandType.MACRO: "CabCommandMacro",
    CommandType.RESPONSE: "CabCommandResponse",
    CommandType.SPEED: "CabCommandSpeed",
    CommandType.DIRECTION: "CabCommandDirection",
    CommandType.ESTOP: "CabCommandESTOP",
    CommandType.FUNCTION: "CabCommandFunction",
    CommandType.UNSELECT_LOCO: "CabCommandUnselectLoco",
}


def command_to_string(command: int) -> str:
    """Human-readable name of a command, or ``"UNKNOWN"``."""
    try:
        return _COMMAND_NAMES[CommandType(command)]
    except ValueError:
        return "UNKNOWN"
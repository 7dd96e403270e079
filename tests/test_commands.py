import pytest

from railbus.commands import CabCommand, CommandType, SwitchPosition, command_to_string


@pytest.mark.parametrize(
    "command, name",
    [
        (CommandType.NONE, "CabCommandNone"),
        (CommandType.SEL_LOCO, "CabCommandSelectLoco"),
        (CommandType.SWITCH, "CabCommandSwitch"),
        (CommandType.MACRO, "CabCommandMacro"),
        (CommandType.RESPONSE, "CabCommandResponse"),
        (CommandType.SPEED, "CabCommandSpeed"),
        (CommandType.DIRECTION, "CabCommandDirection"),
        (CommandType.ESTOP, "CabCommandESTOP"),
        (CommandType.FUNCTION, "CabCommandFunction"),
        (CommandType.UNSELECT_LOCO, "CabCommandUnselectLoco"),
    ],
)
def test_command_names(command, name):
    assert command_to_string(command) == name


def test_plain_int_accepted():
    assert command_to_string(int(CommandType.SPEED)) == command_to_string(CommandType.SPEED)


@pytest.mark.parametrize("value", [-1, 10, 255])
def test_unknown_command(value):
    assert command_to_string(value) == "UNKNOWN"


def test_every_command_has_distinct_name():
    names = {command_to_string(c) for c in CommandType}
    assert len(names) == len(CommandType)
    assert "UNKNOWN" not in names


def test_new_command_is_none():
    assert CabCommand().command is CommandType.NONE


def test_clear_resets_command_only():
    cmd = CabCommand(command=CommandType.SWITCH, switch_number=12,
                     switch_position=SwitchPosition.REVERSE)
    cmd.clear()
    assert cmd.command is CommandType.NONE
    assert cmd.switch_number == 12
    assert cmd.switch_position is SwitchPosition.REVERSE
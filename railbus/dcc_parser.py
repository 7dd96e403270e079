"""Decoding of DCC packets into locomotive speed and accessory events."""

from __future__ import annotations

import enum
from typing import Callable, Optional, Sequence


class Direction(enum.IntEnum):
    """Direction of travel carried by a DCC speed packet."""

    FORWARD = 0
    REVERSE = 1


class AccessoryDirection(enum.IntEnum):
    """Position requested for an accessory (turnout) output."""

    NORMAL = 0
    REVERSE = 1


SpeedDirCallback = Callable[[Direction, int], None]
EstopCallback = Callable[[], None]
AccessoryCallback = Callable[[int, AccessoryDirection], None]

MAX_SHORT_ADDRESS = 128
_IDLE_PACKET = bytes((0xFF, 0x00, 0xFF))


class PacketParser:
    """Interprets validated DCC packets and dispatches them to callbacks.

    Speed packets addressed to the configured short address, or broadcast to
    address 0, go to ``on_speed_dir(direction, speed)`` or ``on_estop()``.
    Accessory packets go to ``on_accessory(output_address, direction)``.
    """

    def __init__(
        self,
        short_address: int = 0,
        on_speed_dir: Optional[SpeedDirCallback] = None,
        on_estop: Optional[EstopCallback] = None,
        on_accessory: Optional[AccessoryCallback] = None,
    ) -> None:
        self._short_address = 0
        self.short_address = short_address
        self.on_speed_dir = on_speed_dir
        self.on_estop = on_estop
        self.on_accessory = on_accessory

    @property
    def short_address(self) -> int:
        """The 7-bit locomotive address this parser answers to."""
        return self._short_address

    @short_address.setter
    def short_address(self, address: int) -> None:
        if not 0 <= address <= MAX_SHORT_ADDRESS:
            raise ValueError(f"short address out of range: {address}")
        self._short_address = address

    def parse(self, data: Sequence[int]) -> None:
        """Decode one packet (without preamble, with error byte)."""
        packet = bytes(data)
        if packet == _IDLE_PACKET or len(packet) < 2:
            return

        address = packet[0]
        if address == 0:
            self._decode_short(packet)
        elif 1 <= address <= 127 and address == self._short_address:
            self._decode_short(packet)
        elif 128 <= address <= 191:
            self._decode_accessory(packet)

    def _decode_short(self, packet: bytes) -> None:
        instruction = packet[1]
        if instruction & 0xC0 != 0x40:
            return

        direction = Direction.FORWARD if instruction & 0x20 else Direction.REVERSE
        speed = (instruction & 0x0F) << 1
        if instruction & 0x10:
            speed |= 0x01

        if self.on_speed_dir is not None and speed != 1:
            # Steps 0..3 are stop/e-stop codes; the result is an unsigned byte.
            speed = (speed - 3) & 0xFF
            self.on_speed_dir(direction, speed)

        if self.on_estop is not None and speed == 1:
            self.on_estop()

    def _decode_accessory(self, packet: bytes) -> None:
        instruction = packet[1]
        pair_index = (instruction & 0x06) >> 1
        msb = ~((instruction & 0x70) >> 4) & 0x03
        board_address = (packet[0] & 0x3F) | (msb << 6)
        output_address = ((((board_address - 1) << 2) | pair_index) + 1) & 0xFFFF

        if self.on_accessory is not None:
            direction = (
                AccessoryDirection.NORMAL
                if instruction & 0x01
                else AccessoryDirection.REVERSE
            )
            self.on_accessory(output_address, direction)
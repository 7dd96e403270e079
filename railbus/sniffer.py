"""Passive monitor that prints the traffic seen on a cab bus."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

import serial

from railbus.commands import Key

_KEY_NAMES = {
    Key.ENTER: "ENTER",
    Key.PROGRAM: "PROGRAM",
    Key.RECALL: "RECALL",
    Key.DIRECTION: "DIRECTION TOGGLE",
    Key.SELECT_LOCO: "SELECT LOCO",
    Key.NO_KEY: "NO KEY",
}


def key_name(byte: int) -> str:
    """Name of a key code as shown by the sniffer, or ``"UKN"``."""
    return _KEY_NAMES.get(byte, "UKN")


class CabBusSniffer:
    """Turns raw bus bytes into descriptive lines of text."""

    def __init__(self) -> None:
        self.address: Optional[int] = None
        self._expect_speed = False

    def feed(self, byte: int) -> str:
        """Consume one byte from the bus and describe it."""
        if byte & 0xC0 == 0x80:
            self.address = byte & 0x3F
            return f"Ping address {self.address}"
        if not self._expect_speed:
            self._expect_speed = True
            return f"  Data: 0x{byte:02X}({key_name(byte)})"
        self._expect_speed = False
        return f"  Data: 0x{byte:02X}(Speed: {byte & 0x7F})"


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Open the given serial port and print cab bus traffic until stopped."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("ERROR: need cabbus COM port", file=sys.stderr)
        return 1

    try:
        port = serial.Serial(args[0], baudrate=9600, stopbits=serial.STOPBITS_TWO)
    except (serial.SerialException, ValueError) as exc:
        print(f"ERROR: Unable to open serial port: {exc}", file=sys.stderr)
        return 1

    sniffer = CabBusSniffer()
    with port:
        try:
            while True:
                try:
                    data = port.read(1)
                except serial.SerialException as exc:
                    print(f"Did not read data properly: {exc}", file=sys.stderr)
                    return 1
                if data:
                    print(sniffer.feed(data[0]), flush=True)
        except KeyboardInterrupt:
            return 0


if __name__ == "__main__":
    sys.exit(main())
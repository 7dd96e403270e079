"""Command-station side of the cab bus: pinging cabs and collecting answers."""

from __future__ import annotations

from typing import Any, Callable, Optional, Tuple

from railbus.cab import ALL_SCREENS, Cab
from railbus.commands import Key
from railbus.keypad import process_button_press

DelayFn = Callable[[int], None]
WriteFn = Callable[[bytes], None]

CAB_COUNT = 64
NO_PING_TIMES = 30
_PING_BYTE = 0x80
_UINT32 = 0xFFFFFFFF

_HAVE_FIRST = 0x01
_HAVE_SECOND = 0x02


class CabBus:
    """Polls the 64 cab addresses in turn and tracks each cab's state.

    ``delay(ms)`` pauses for a number of milliseconds and ``write(data)``
    sends bytes on the bus.  Bytes received from the bus are handed to
    :meth:`incoming_byte`.
    """

    def __init__(self, delay: DelayFn, write: WriteFn) -> None:
        self.delay = delay
        self.write = write
        self.ping_number = NO_PING_TIMES
        self.current_address = 0
        self.user_data: Any = None
        self._cabs = tuple(Cab(number) for number in range(CAB_COUNT))
        self._first_byte = 0
        self._second_byte = 0
        self._byte_status = 0

    @property
    def cabs(self) -> Tuple[Cab, ...]:
        """All cabs, indexed by address."""
        return self._cabs

    def _since_last_ping(self, cab: Cab) -> int:
        return (self.ping_number - cab.last_ping) & _UINT32

    def _next_ping_address(self) -> int:
        address = self.current_address
        while True:
            address += 1
            if address in (1, 2):
                address = 3
            if address == CAB_COUNT:
                # Address 0 is pinged every round no matter what.
                self.ping_number = (self.ping_number + 1) & _UINT32
                return 0

            cab = self._cabs[address]
            elapsed = self._since_last_ping(cab)
            if elapsed > NO_PING_TIMES:
                # Not seen for a while: only probe it now and then.
                if (self.ping_number + cab.number) % 4 == 0:
                    return address
            elif elapsed < NO_PING_TIMES:
                return address

    def ping_step1(self) -> None:
        """Ping the next cab address and wait for it to answer."""
        self.current_address = self._next_ping_address()
        self.write(bytes((_PING_BYTE | self.current_address,)))
        self.delay(1)

    def ping_step2(self) -> Optional[Cab]:
        """Handle the answer to the last ping.

        Returns the cab that answered, or None if no complete answer arrived.
        """
        cab = self._cabs[self.current_address]
        if self._since_last_ping(cab) > 1:
            # Not seen recently: its screens must be sent again.
            cab.dirty_screens |= ALL_SCREENS

        if not self._byte_status & _HAVE_FIRST:
            return None

        cab.command.clear()
        if not self._byte_status & _HAVE_SECOND:
            self._byte_status = 0
            return None

        key = self._first_byte
        self._byte_status = 0
        cab.last_ping = self.ping_number

        if key != Key.NO_KEY:
            process_button_press(cab, self.write, key)
        cab.output_dirty_screens(self.write)
        return cab

    def incoming_byte(self, byte: int) -> None:
        """Record a byte received from the bus."""
        if self._byte_status == 0:
            self._first_byte = byte & 0xFF
            self._byte_status = _HAVE_FIRST
        elif self._byte_status == _HAVE_FIRST:
            self._second_byte = byte & 0xFF
            self._byte_status = _HAVE_FIRST | _HAVE_SECOND
        else:
            self._byte_status = 0

    def cab_by_id(self, cab_id: int) -> Cab:
        """The cab at a bus address (0-63)."""
        if not 0 <= cab_id < CAB_COUNT:
            raise IndexError(f"no cab with id {cab_id}")
        return self._cabs[cab_id]

    def set_all_cab_times(self, hours: int, minutes: int, am: bool) -> None:
        """Show the same time on every cab."""
        for cab in self._cabs:
            cab.set_time(hours, minutes, am)
"""Decoding of the DCC track signal into packets from edge timings."""

from __future__ import annotations

import enum
from typing import Callable, Optional

from railbus.dcc_parser import PacketParser

PacketCallback = Callable[[bytes], None]

_ONE_HALF_BIT_MIN = 52
_ONE_HALF_BIT_MAX = 64
_ZERO_HALF_BIT_MIN = 90
_ZERO_HALF_BIT_MAX = 10000

_ONE_BIT_MIN = _ONE_HALF_BIT_MIN * 2
_ONE_BIT_MAX = _ONE_HALF_BIT_MAX * 2
_ZERO_BIT_MIN = _ZERO_HALF_BIT_MIN * 2

_EXPANDED_ONE_BIT = 7
_MIN_PREAMBLE_BITS = 10
_MAX_PACKET_BYTES = 6


class DecodingScheme(enum.IntEnum):
    """Which signal edges the caller reports."""

    IRQ_BOTH = 0
    IRQ_RISING_OR_FALLING = 1


class DccDecoderError(Exception):
    """Base class for decoding errors."""


class BitTimingError(DccDecoderError):
    """A timing did not match a valid one or zero bit."""


class InvalidPacketError(DccDecoderError):
    """A received packet failed its error-detection byte check."""


class _ParseState(enum.Enum):
    PREAMBLE = enum.auto()
    DATA_BYTE = enum.auto()
    BYTE_START_BIT = enum.auto()
    DONE = enum.auto()


class _Bit(enum.Enum):
    ZERO = enum.auto()
    ONE = enum.auto()
    INVALID = enum.auto()
    ZERO_TO_ONE = enum.auto()
    ONE_TO_ZERO = enum.auto()


def _whole_bit(timediff: int, expand: int) -> _Bit:
    if _ONE_BIT_MIN - expand * 2 <= timediff <= _ONE_BIT_MAX + expand * 2:
        return _Bit.ONE
    if timediff >= _ZERO_BIT_MIN:
        return _Bit.ZERO
    return _Bit.INVALID


def _half_bit(timediff: int, expand: int) -> _Bit:
    if _ONE_HALF_BIT_MIN - expand <= timediff <= _ONE_HALF_BIT_MAX + expand:
        return _Bit.ONE
    if _ZERO_HALF_BIT_MIN <= timediff <= _ZERO_HALF_BIT_MAX:
        return _Bit.ZERO
    return _Bit.INVALID


def _two_half_bits(first: int, second: int, expand: int) -> _Bit:
    pair = (_half_bit(first, expand), _half_bit(second, expand))
    return {
        (_Bit.ONE, _Bit.ONE): _Bit.ONE,
        (_Bit.ZERO, _Bit.ZERO): _Bit.ZERO,
        (_Bit.ONE, _Bit.ZERO): _Bit.ONE_TO_ZERO,
        (_Bit.ZERO, _Bit.ONE): _Bit.ZERO_TO_ONE,
    }.get(pair, _Bit.INVALID)


def _checksum_ok(packet: bytes) -> bool:
    xor = 0
    for byte in packet[:-1]:
        xor ^= byte
    return xor == packet[-1]


class DccDecoder:
    """Assembles DCC packets from the time between signal edges (microseconds).

    Use :meth:`polarity_changed` when both edges are reported and
    :meth:`rising_or_falling` when only one edge is reported.  A completed
    packet is handed out by :meth:`pump_packet`.
    """

    def __init__(
        self,
        scheme: DecodingScheme = DecodingScheme.IRQ_BOTH,
        expand_one_bit: bool = False,
        parser: Optional[PacketParser] = None,
        on_packet: Optional[PacketCallback] = None,
    ) -> None:
        self.scheme = DecodingScheme(scheme)
        self.expand_one_bit = expand_one_bit
        self.parser = parser
        self.on_packet = on_packet

        self._num_one_bits = 0
        self._packet_data = bytearray(_MAX_PACKET_BYTES)
        self._packet_pos = 0
        self._state = _ParseState.PREAMBLE
        self._previous_timing = 0
        self._working_byte = 0
        self._working_bit = 0
        self._last_packet: Optional[bytes] = None

    @property
    def _expand(self) -> int:
        return _EXPANDED_ONE_BIT if self.expand_one_bit else 0

    def _resync(self) -> None:
        self._num_one_bits = 0
        self._state = _ParseState.PREAMBLE

    def polarity_changed(self, timediff: int) -> bool:
        """Report a half-bit; ``timediff`` is 0 on the first edge.

        Returns True when a whole packet has been received.
        Raises BitTimingError when the timing pair is not a valid bit.
        """
        if timediff == 0:
            self._resync()
            return False

        if self._previous_timing == 0:
            self._previous_timing = timediff
            return False

        timing = _two_half_bits(self._previous_timing, timediff, self._expand)
        if timing in (_Bit.ZERO, _Bit.ONE):
            self._previous_timing = 0
        else:
            # Off by half a bit: pair this half with the next one.
            self._previous_timing = timediff

        return self._process_whole_bit(timing)

    def rising_or_falling(self, timediff: int) -> bool:
        """Report a whole bit; ``timediff`` is 0 on the first edge.

        Returns True when a whole packet has been received.
        Raises BitTimingError when the timing is not a valid bit.
        """
        if timediff == 0:
            self._resync()
            return False

        timing = _whole_bit(timediff, self._expand)
        if timing is _Bit.INVALID:
            raise BitTimingError(f"invalid bit duration: {timediff}")

        return self._process_whole_bit(timing)

    def _process_whole_bit(self, timing: _Bit) -> bool:
        if timing not in (_Bit.ZERO, _Bit.ONE):
            if self._state is _ParseState.PREAMBLE:
                self._num_one_bits = 0
            raise BitTimingError(f"invalid bit timing: {timing.name}")

        if self._state is _ParseState.PREAMBLE:
            if timing is _Bit.ONE:
                self._num_one_bits = (self._num_one_bits + 1) & 0xFF
            elif self._num_one_bits >= _MIN_PREAMBLE_BITS:
                # This zero is the packet start bit.
                self._state = _ParseState.DATA_BYTE
                self._working_byte = 0
                self._working_bit = 7
                self._packet_pos = 0
                return False
            else:
                self._num_one_bits = 0
                return False

        if self._state is _ParseState.DATA_BYTE:
            if timing is _Bit.ONE:
                self._working_byte |= 1 << self._working_bit
            if self._working_bit == 0:
                self._packet_data[self._packet_pos] = self._working_byte
                self._packet_pos += 1
                self._working_byte = 0
                self._working_bit = 8
                self._state = _ParseState.BYTE_START_BIT
                if self._packet_pos >= _MAX_PACKET_BYTES:
                    self._resync()
            self._working_bit -= 1
        elif self._state is _ParseState.BYTE_START_BIT:
            if timing is _Bit.ZERO:
                self._state = _ParseState.DATA_BYTE
            else:
                self._state = _ParseState.DONE
                self._num_one_bits = 0

        if self._state is _ParseState.DONE:
            self._last_packet = bytes(self._packet_data[: self._packet_pos])
            self._packet_data = bytearray(_MAX_PACKET_BYTES)
            self._resync()
            return True

        return False

    def pump_packet(self) -> Optional[bytes]:
        """Deliver the last received packet, if any.

        The packet (including its error byte) goes to ``on_packet`` and then
        to the parser, and is returned.  Returns None when nothing is pending.
        Raises InvalidPacketError when the error byte does not match.
        """
        packet = self._last_packet
        if packet is None:
            return None
        self._last_packet = None

        if not _checksum_ok(packet):
            raise InvalidPacketError(f"bad error-detection byte in {packet.hex()}")

        if self.on_packet is not None:
            self.on_packet(packet)
        if self.parser is not None:
            self.parser.parse(packet)
        return packet
# railbus

Python tools for two model railway buses:

* **DCC** – turn the edge timings of a DCC track signal into packets, check
  their error byte, and interpret locomotive speed/direction, emergency stop
  and accessory (turnout) packets.
* **Cab bus** – the command-station side of a cab bus: ping the hand-held
  cabs in turn, keep their 2×16 character displays up to date and turn
  their key presses into commands. A small sniffer prints the traffic seen
  on a live bus.

## Installation

```
pip install railbus
```

`pyserial` is installed with the package; the sniffer uses it to open the
serial port.

## Watching a cab bus

```
railbus-sniffer /dev/ttyUSB0
```

The port is opened at 9600 baud with two stop bits. For each ping byte the
sniffer prints `Ping address N`; other bytes are printed alternately as a
key byte (with its name where known, e.g. `ENTER`, `SELECT LOCO`,
`NO KEY`, otherwise `UKN`) and a speed byte. Stop it with Ctrl-C.

To decode a capture yourself, hand bytes one at a time to
`railbus.sniffer.CabBusSniffer.feed`, which returns the line of text for
each; `railbus.sniffer.key_name` names a single key byte.

## Decoding DCC

Feed the time in microseconds between edges of the track signal into a
`railbus.dcc_decoder.DccDecoder`, then pump finished packets out of it:

```python
from railbus.dcc_decoder import DccDecoder, DecodingScheme, DccDecoderError
from railbus.dcc_parser import PacketParser

def on_speed(direction, speed):
    print(direction.name, speed)

parser = PacketParser(short_address=55, on_speed_dir=on_speed)
decoder = DccDecoder(scheme=DecodingScheme.IRQ_BOTH, parser=parser)

for timediff in edge_timings:
    try:
        decoder.polarity_changed(timediff)   # timing of each half bit
        decoder.pump_packet()
    except DccDecoderError:
        pass
```

* `polarity_changed(timediff)` takes the time between every edge (half
  bits); `rising_or_falling(timediff)` takes the time between edges of one
  kind (whole bits). A `timediff` of 0 resynchronises. Both return True
  when a packet has been completed.
* `expand_one_bit=True` widens the accepted duration of a one bit.
* `pump_packet()` returns the pending packet (bytes, error byte included),
  or None if there is none. It first calls `on_packet(packet)` if given,
  then hands the packet to the parser.
* A timing that fits no bit raises `BitTimingError`; a packet whose error
  byte does not match raises `InvalidPacketError`. Both derive from
  `DccDecoderError`.

`PacketParser.parse(data)` can also be used on its own with raw packet
bytes. Speed packets for the parser's `short_address` (0–128) or broadcast
to address 0 call `on_speed_dir(Direction, speed)`, or `on_estop()` for an
emergency stop; accessory packets call
`on_accessory(output_address, AccessoryDirection)`. Idle packets are
ignored.

## Running a cab bus

```python
from railbus.bus import CabBus
from railbus.commands import CommandType, command_to_string

bus = CabBus(delay=my_delay_ms, write=my_serial_write)

while True:
    bus.ping_step1()
    for byte in read_serial():
        bus.incoming_byte(byte)
    cab = bus.ping_step2()
    if cab is not None and cab.command.command != CommandType.NONE:
        print(cab.number, command_to_string(cab.command.command))
```

`delay(ms)` must pause for that many milliseconds and `write(data)` must
send the given bytes on the bus. Cabs that have not answered for a while
are probed less often; address 0 is pinged on every round.

Each `railbus.cab.Cab` (see `CabBus.cabs` and `CabBus.cab_by_id`) keeps its
locomotive number, speed, direction, functions and display contents. One
quarter of the display, or one cursor change, is sent each time the cab
answers. `set_loco_number`, `set_loco_speed`, `set_direction`,
`set_function` and `set_time` change what the cab shows;
`CabBus.set_all_cab_times` sets the clock on every cab.
`Cab.ask_question` and `Cab.user_message` show a line of up to 16
characters (longer ones are ignored); the answer to a question comes back
as a `RESPONSE` command.

Key presses are handled by `railbus.keypad.process_button_press`, which
leaves the result in `cab.command`, a `CabCommand` whose kind is a
`CommandType`: select or release a locomotive, speed steps, direction,
emergency stop, functions (including horn and bell), turnouts with a
`SwitchPosition`, and answers to questions. Key codes are listed in
`railbus.commands.Key`.

## What it does not do

The cab bus classes contain only the bus logic: they do not open or read a
serial port themselves, and nothing in the package turns cab commands into
messages for another layout control bus. The caller supplies the `write`
and `delay` functions, passes received bytes to `incoming_byte`, and acts
on the commands. Likewise the DCC decoder does not sample a signal; it
needs the edge timings from elsewhere.
# midipi

Building blocks for a small MIDI synthesizer appliance, in plain Python with
no dependencies outside the standard library.

## Modules

- `midipi.midiparser` – `MidiParser`, a byte-stream MIDI parser. It handles
  running status, System Real-Time bytes that arrive in the middle of a
  message, and SysEx messages of up to 1000 bytes. Pass handlers to the
  constructor or subclass it and override `on_short_message`,
  `on_sysex_message`, `on_unexpected_status` and `on_sysex_overflow`. Short
  messages arrive as an integer with the status byte in the lowest eight bits.
- `midipi.midimonitor` – `MidiMonitor` follows note-on/off, damper, volume and
  expression messages. `channel_levels(ticks)` returns the level and held peak
  of each of the 16 channels, each between 0.0 and 1.0. Channel 10 is treated
  as percussion by default.
- `midipi.config` – value parsers for configuration options: `parse_bool`,
  `parse_int`, `parse_float`, `parse_ip_address` and `parse_enum`. Invalid
  booleans, addresses and enum names raise `ValueError`.
- `midipi.events` – `Button`, `Synth`, `Image`, `MisterSynth`, the three-byte
  `MisterStatus` record, and the event dataclasses (`ButtonEvent`,
  `EncoderEvent`, `SwitchSynthEvent`, `SwitchMT32ROMSetEvent`,
  `SwitchSoundFontEvent`, `DisplayImageEvent`, `AllSoundOffEvent`).
- `midipi.mister` – `MisterControl` polls a MiSTer core over an I2C bus object
  that you supply. It appends events to your queue when the core's settings
  change and writes the synth's own changes back to the core.
- `midipi.rotaryencoder` – `RotaryEncoder` decodes quadrature pin levels for
  full, half and quarter step encoders (`EncoderType`). It rejects switch
  bounce and speeds up fast turns.
- `midipi.control` – `SimpleButtonsControl` and `SimpleEncoderControl`.
  `poll()` samples a GPIO word from your reader function and debounces it over
  16 samples. `update()` emits press, release and auto-repeat `ButtonEvent`s,
  plus `EncoderEvent`s where an encoder is fitted.
- `midipi.ui` – `UserInterface` decides what a display shows. That can be
  system messages with scrolling or a spinner, images, SysEx text and 16x16
  bitmaps, power saving, or per-channel level meters drawn with
  `draw_channel_levels`.
- `midipi.hd44780` – command logic for HD44780 character LCDs in 4-bit mode.
  `HD44780FourBit` drives the pins through a `write_pin(pin, level)` function.
  `HD44780I2C` writes through an I2C backpack via a bus object with
  `write(address, data)`.

Times are ticks of a 1 MHz clock. Classes that need the time take an optional
`clock` function. By default they use a monotonic clock wrapped to 32 bits.

## Install

```
pip install midipi
```

## Example

```python
from midipi.midiparser import MidiParser

class Printer(MidiParser):
    def on_short_message(self, message):
        print(hex(message))

    def on_sysex_message(self, data):
        print("sysex", bytes(data).hex())

Printer().parse(bytes([0x90, 60, 100, 62, 100]), False)
```

The example prints two note-on messages. The second one uses running status.

`midipi.utility.roland_checksum` computes the checksum byte that Roland SysEx
messages carry.

## What it does not do

- It produces no sound. There is no synthesizer engine and no audio output.
- It has no command-line program or main loop. You wire parser, monitor,
  controls and display together yourself.
- It talks to no hardware by itself. GPIO reads, pin writes and I2C transfers
  go through functions and objects that you pass in.
- It has no driver for graphical (pixel) displays. `UserInterface` can draw on
  one, but you must supply an object with the methods of its `LCD` protocol.

## Tests

```
pip install midipi[test]
pytest
```
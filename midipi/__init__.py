"""MIDI parsing and monitoring, front-panel controls, display state and HD44780 drivers for a MIDI synthesizer."""

__version__ = "0.1.0"
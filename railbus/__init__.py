"""Model railway bus protocols: DCC signal decoding, cab bus control and sniffing."""

__version__ = "0.1.0"
"""Relay IBC handshakes, packets and acknowledgements between two configured chains."""

__version__ = "0.1.0"
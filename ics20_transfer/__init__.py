"""In-memory model of an ICS20 token-transfer contract with per-channel balance accounting."""

__version__ = "0.1.0"
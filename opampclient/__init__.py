"""Transport-independent client side of the OpAMP agent management protocol."""

__version__ = "0.1.0"
__all__ = [
    "client",
    "common",
    "errors",
    "inmemstore",
    "messages",
    "nextmessage",
    "packagessyncer",
    "receivedprocessor",
    "sender",
    "state",
    "types",
]
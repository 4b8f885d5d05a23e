"""eBUS data types, enhanced adapter protocol framing, adapter INFO parsing and byte transports."""

__version__ = "0.1.0"

__all__ = [
    "adapter_info",
    "base",
    "datatypes",
    "enh",
    "enh_transport",
    "loopback",
    "plain",
    "structured",
    "transport",
]
# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines flow control signals used by Flagchain flag sets.

Signals inherit from `FlowSignal`, a subclass of `BaseException`, so they
bypass standard `except Exception` blocks and are never mistaken for a
parse failure.

Signals:
- HelpSignal: A flag set was asked for `-h` / `-help` and did not define it.
"""


class FlowSignal(BaseException):
    """Base class for all flow control signals in Flagchain.

    These are not errors. A caller that sees one should render usage and exit
    cleanly rather than report a fault.
    """


class HelpSignal(FlowSignal):
    """Raised when a flag set is asked to display help."""

    def __init__(self, message: str = "flag: help requested"):
        super().__init__(message)

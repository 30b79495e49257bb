"""Hard failures that abort the current operation."""

from __future__ import annotations


class StoreUnavailable(RuntimeError):
    """The underlying store could not be reached or failed transiently.

    Raised by store adapters and propagated unchanged; nothing in the core retries.
    """

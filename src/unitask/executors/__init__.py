"""Process-wide execution contexts shared by every runner.

A single carrier event loop multiplexes logical tasks; blocking task bodies
are offloaded to a bounded :class:`concurrent.futures.ThreadPoolExecutor`.
"""

from . import carrier

__all__ = ["carrier"]

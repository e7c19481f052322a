"""Backend adapters for the lg interface.

``lg.adapters.loguru`` is the default backend. ``lg.adapters.structlog``
and ``lg.adapters.stdlib`` offer the same contract over structlog and the
standard library ``logging`` module.
"""

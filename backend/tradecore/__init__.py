"""Core decision logic: indicators, strategies, and pre-trade risk checks.

This package contains pure business logic with no I/O dependencies
(no database, exchange, or network access). Anything that needs external
data reaches it through the protocols in ``tradecore.ports``.
"""

# src/vsched/__init__.py
"""Token vesting scheduler: time-gated, round-based token releases."""

__version__ = "0.1.0"

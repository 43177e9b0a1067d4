"""
hookwarden - a GitHub App webhook receiver.

Verifies webhook deliveries, authenticates as the app and its installations,
and reacts to events by creating check runs.
"""

__version__ = "0.1.0"

"""
Firmrel - firmware release tooling

Bumps version identifiers across the firmware sources on a fresh release
branch, rolling every change back if any edit fails, and generates the
changelog from merged pull requests.
"""

__version__ = "1.0.0"

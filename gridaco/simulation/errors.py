"""Exceptions raised while setting up a run."""

from __future__ import annotations


class InvalidConfigurationError(ValueError):
    """The run configuration cannot describe a valid search.

    Raised before any iteration starts.
    """

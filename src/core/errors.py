"""Error taxonomy shared by the core and its adapters."""

from __future__ import annotations


class LorekeeperError(Exception):
    """Base class for errors raised by lorekeeper."""


class InvalidArgument(LorekeeperError, ValueError):
    """An identifier or required field was empty or malformed.

    Raised before any I/O takes place.
    """


class StoreError(LorekeeperError):
    """The persistent store failed (connectivity, constraint, missing row)."""


class ClassificationError(LorekeeperError):
    """An inbound event lacks the identity fields needed to classify it."""


class ConfigError(LorekeeperError):
    """A configuration document could not be read or parsed."""

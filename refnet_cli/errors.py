"""Exception types raised by the referral network builder."""

from __future__ import annotations


class RefnetError(Exception):
    """Base class for errors surfaced to callers."""


class RecordSourceError(RefnetError):
    """The record snapshot could not be obtained; the build is aborted."""


class ConfigError(RefnetError):
    """The settings file exists but cannot be parsed."""

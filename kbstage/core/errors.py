from __future__ import annotations


class KbStageError(RuntimeError):
    """Base error for kbstage."""


class SettingsError(KbStageError):
    """Configuration file or environment override is invalid."""

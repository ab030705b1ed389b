#!/usr/bin/env python3
"""
VBOXTREE ERRORS
---------------
Typed failures raised across the parsing core, the engine and the CLI.

Everything derives from VBoxTreeError so the CLI can draw a single
boundary. Reconstruction failures share ReconstructionError so callers can
tell "the snapshot data is corrupt" apart from "there are no snapshots"
(which is a successful None, never an exception).

Author: VBoxTree Team
Date: 2026-10-19
"""

from typing import Optional


class VBoxTreeError(Exception):
    """Base class for every error raised by vboxtree."""
    pass


class EncodingError(VBoxTreeError, ValueError):
    """Input buffer is not valid UTF-8."""
    pass


class ConfigError(VBoxTreeError):
    """Configuration file could not be read or parsed."""
    pass


# --- Reconstruction -------------------------------------------------------

class ReconstructionError(VBoxTreeError):
    """The flat map claims snapshots exist but the data is unusable."""
    pass


class MalformedIdentifier(ReconstructionError):
    """A value expected to be a UUID (or MAC address) does not parse."""
    pass


class MissingData(ReconstructionError):
    """A key required at this point of the reconstruction is absent."""
    pass


class DuplicateIdentifier(ReconstructionError):
    """The same snapshot UUID appears under two different branch paths."""
    pass


# --- Name lookups ---------------------------------------------------------

class NotFound(VBoxTreeError, LookupError):
    """A name-based lookup matched nothing."""
    pass


class Ambiguous(VBoxTreeError):
    """A name-based lookup matched more than one entry."""
    pass


# --- Command execution ----------------------------------------------------

class CommandError(VBoxTreeError):
    """Base for failures while running VBoxManage."""

    def __init__(self, message: str, command: Optional[list] = None):
        super().__init__(message)
        self.command = command or []


class FailedToExecute(CommandError):
    """The binary could not be spawned at all."""
    pass


class CommandFailed(CommandError):
    """The command ran and exited with a non-zero status."""

    def __init__(self, command: list, returncode: Optional[int], stderr: str = ""):
        detail = stderr.strip()
        message = f"Command failed; exit status={returncode}; {' '.join(command)}"
        if detail:
            message = f"{message}; {detail}"
        super().__init__(message, command)
        self.returncode = returncode
        self.stderr = stderr


class CommandTimeout(CommandError):
    """The command did not finish within the configured timeout."""
    pass

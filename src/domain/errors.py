from __future__ import annotations


class EditValidationError(ValueError):
    """User input is incomplete; the operation was not attempted."""


class ImageDecodeError(ValueError):
    """Bytes could not be turned into an image snapshot or mask."""


class EditorError(RuntimeError):
    """The external edit collaborator failed or returned no usable image."""

from __future__ import annotations


class GrafficError(Exception):
    """Base class for lifecycle errors raised by Graffic."""


class ValidationError(GrafficError):
    """
    Raised when an asset cannot enter or continue its lifecycle:
    no input was supplied at creation, the input could not be decoded,
    or a transform function returned something other than an image.
    """


class NotFoundError(GrafficError):
    """Raised when an asset id (or asset kind) does not resolve."""

    def __init__(self, what: str, ident: str):
        super().__init__(f"{what} not found: {ident}")
        self.what = what
        self.ident = ident

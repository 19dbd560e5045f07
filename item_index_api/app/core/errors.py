"""
Exceptions raised by the item index.

Both concrete errors subclass ``ValueError`` so that callers which only
care about "bad input" can catch that, while the HTTP layer tells them
apart to choose a status code.
"""


class ItemIndexError(ValueError):
    """Base class for errors raised by :mod:`ordered_index`."""


class InvalidIndices(ItemIndexError):
    """A reorder referenced positions outside the order or non-integers."""

    def __init__(self, source=None, target=None) -> None:
        super().__init__("Invalid indices")
        self.source = source
        self.target = target


class InvalidInput(ItemIndexError):
    """An argument had the wrong type or an impossible value."""

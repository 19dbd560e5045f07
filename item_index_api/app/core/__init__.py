"""
Core of the service: the item index and its infrastructure.

``ordered_index`` is the stateful heart of the application; it is built
from ``position_index`` (positional access) and ``search`` (substring
matching over ids).
"""

"""
Application package initializer.

``core`` holds the item index and the infrastructure around it
(configuration, logging, lifecycle, frontend hosting); ``services``
wraps the index for the HTTP layer; ``schemas`` defines the payloads;
``api`` groups the routes by version.
"""

from .main import app  # noqa: F401

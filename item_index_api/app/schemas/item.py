"""
Pydantic models for item data.

Field names follow Python conventions; the JSON names used by the
browser client (``globalIndex``, ``hasMore``, ``from``, ``to``) are set as
aliases.  Responses are serialised by alias.
"""

from typing import Any, List

from pydantic import BaseModel, Field, StrictBool, StrictInt


class ItemRead(BaseModel):
    """One row of the item list."""

    id: int = Field(..., examples=[42])
    value: int = Field(..., examples=[42])
    selected: bool = False
    global_index: int = Field(..., alias="globalIndex", examples=[41])

    model_config = {
        "populate_by_name": True,
    }


class ItemPageRead(BaseModel):
    """A page of the item list and whether more items follow."""

    items: List[ItemRead]
    has_more: bool = Field(..., alias="hasMore")

    model_config = {
        "populate_by_name": True,
    }


class SelectedRead(BaseModel):
    selected: List[int]


class SelectRequest(BaseModel):
    """Schema for selecting or deselecting an item."""

    id: StrictInt = Field(..., examples=[42])
    selected: StrictBool = Field(..., examples=[True])


class ReorderRequest(BaseModel):
    """Schema for moving an item within the full order.

    ``from`` and ``to`` are accepted as any JSON value so that the index,
    not the schema, decides what counts as valid positions and the client
    gets the usual 400 for non-integers.
    """

    source: Any = Field(..., alias="from", examples=[5])
    target: Any = Field(..., alias="to", examples=[2])

    model_config = {
        "populate_by_name": True,
    }


class StatusRead(BaseModel):
    status: str = "ok"


class IndexInfoRead(BaseModel):
    """General information about the service and its index."""

    project_name: str
    api_version: str
    total: int
    selected: int
    leaves: int
    version: int
    cached_searches: int

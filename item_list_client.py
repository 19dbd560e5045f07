"""Item Index API client.

This module defines a small client for the Item Index HTTP API and a
session object that keeps the state of a scrolling, searchable,
reorderable item list on top of it.  The client uses the ``requests``
library internally.

:class:`ItemIndexAPI` exposes one method per API operation:

* :meth:`ItemIndexAPI.fetch_items` – one page of items, optionally filtered.
* :meth:`ItemIndexAPI.fetch_selected` – the ids currently selected.
* :meth:`ItemIndexAPI.select_item` – select or deselect an item.
* :meth:`ItemIndexAPI.reorder_items` – move an item within the full order.
* :meth:`ItemIndexAPI.get_info` – service name, version and index counters.

Every method returns a tuple ``(result, error)``.  On success ``error`` is
``None``; on failure ``result`` is empty and ``error`` is a dictionary with
``status_code`` and ``message``.  No method raises on HTTP or network
failures.

:class:`ItemListSession` mirrors what a list view does with those calls:
it appends pages as the user scrolls, restarts from the top when the
search term changes, and applies selections and moves locally before the
server confirms them, undoing them if the server refuses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

import requests


logger = logging.getLogger(__name__)

PAGE_SIZE = 20

Error = Dict[str, Any]


@dataclass
class ApiEndpoint:
    """An API operation.

    Attributes:
        path: The URI relative to the API prefix, e.g. ``/items``.
        method: The HTTP method in upper case (``GET``, ``POST``, etc.).
    """

    path: str
    method: str


class ItemIndexAPI:
    """Client for interacting with the Item Index API."""

    ENDPOINTS: Dict[str, ApiEndpoint] = {
        "items": ApiEndpoint(path="/items", method="GET"),
        "selected": ApiEndpoint(path="/items/selected", method="GET"),
        "select": ApiEndpoint(path="/items/select", method="POST"),
        "reorder": ApiEndpoint(path="/items/reorder", method="POST"),
        "info": ApiEndpoint(path="/info", method="GET"),
    }

    def __init__(
        self,
        *,
        base_url: str,
        api_prefix: str = "/api/v1",
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the server, e.g. ``http://localhost:4000``.
            api_prefix: Prefix of the API routes.  ``/api`` reaches the
                same routes as the default ``/api/v1``.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Seconds to wait for each response.
        """
        self.base_url = base_url.rstrip("/")
        self.api_prefix = "/" + api_prefix.strip("/") if api_prefix.strip("/") else ""
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, operation: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Perform the HTTP request for ``operation``.

        Returns:
            A tuple ``(data, error)``. ``data`` contains the parsed JSON
            response on success and ``error`` is ``None``. On failure,
            ``data`` is ``None`` and ``error`` is a dictionary with keys
            ``status_code`` and ``message`` describing the issue.
        """
        ep = self.ENDPOINTS[operation]
        url = f"{self.base_url}{self.api_prefix}{ep.path}"
        try:
            logger.debug("Sending %s request to %s", ep.method, url)
            response = self.session.request(
                method=ep.method,
                url=url,
                params=params,
                json=json_body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("detail") or err_json.get("message") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not isinstance(message, str):
                # validation errors carry a list of problems
                message = str(message)
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    # ------------------------------------------------------------------
    # Item operations
    # ------------------------------------------------------------------
    def fetch_items(
        self, offset: int = 0, limit: int = PAGE_SIZE, search: str = ""
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Retrieve one page of items.

        Args:
            offset: Index of the first item of the page within the
                (filtered) list.
            limit: Maximum number of items to return.
            search: Substring the item ids must contain; empty for all.
        Returns:
            A tuple ``(page, error)``.  ``page`` has ``items`` and
            ``hasMore``.
        """
        params = {"offset": offset, "limit": limit, "search": search}
        data, error = self._request("items", params=params)
        if error:
            return None, error
        return data, None

    def fetch_selected(self) -> Tuple[List[int], Optional[Error]]:
        """Retrieve the ids of all selected items."""
        data, error = self._request("selected")
        if error:
            return [], error
        if isinstance(data, dict) and isinstance(data.get("selected"), list):
            return data["selected"], None
        return [], None

    def select_item(self, item_id: int, selected: bool) -> Tuple[bool, Optional[Error]]:
        """Select or deselect an item.

        Returns:
            A tuple ``(success, error)``.
        """
        _, error = self._request("select", json_body={"id": item_id, "selected": selected})
        if error:
            return False, error
        return True, None

    def reorder_items(self, source: int, target: int) -> Tuple[bool, Optional[Error]]:
        """Move the item at global position ``source`` to ``target``.

        Returns:
            A tuple ``(success, error)``.  A rejected move comes back with
            ``status_code`` 400.
        """
        _, error = self._request("reorder", json_body={"from": source, "to": target})
        if error:
            return False, error
        return True, None

    def get_info(self) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Retrieve the service name, version and index counters."""
        return self._request("info")


def shifted_position(position: int, source: int, target: int) -> int:
    """Return where ``position`` ends up after the server moves the item at
    ``source`` to ``target``."""
    if position == source:
        return target
    if source < position <= target:
        return position - 1
    if target <= position < source:
        return position + 1
    return position


class ItemListSession:
    """Client-side state of one item list view.

    Attributes:
        items: Items loaded so far, as dictionaries with ``id``,
            ``value``, ``selected`` and ``globalIndex``.
        search: Current search term.
        offset: Number of (filtered) items loaded, i.e. the offset of the
            next page.
        has_more: Whether the server reported more items after the last
            page.
        selected_ids: Ids known to be selected.  Authoritative for the
            ``selected`` flag of loaded items.
        last_error: Error of the most recent failed call, if any.
    """

    def __init__(self, api: ItemIndexAPI, page_size: int = PAGE_SIZE) -> None:
        self.api = api
        self.page_size = page_size
        self.items: List[Dict[str, Any]] = []
        self.search = ""
        self.offset = 0
        self.has_more = True
        self.selected_ids: Set[int] = set()
        self.last_error: Optional[Error] = None

    def initialize(self) -> Optional[Error]:
        """Fetch the selection, then the first page.

        A failure to fetch the selection is logged and the first page is
        loaded anyway.
        """
        selected, error = self.api.fetch_selected()
        if error:
            logger.error("Could not load the selection: %s", error["message"])
            self.last_error = error
        else:
            self.selected_ids = set(selected)
        return self.load_page(reset=True)

    def load_page(self, reset: bool = False) -> Optional[Error]:
        """Load the next page, or the first one when ``reset`` is true.

        Does nothing once the server has reported that no items follow.
        """
        if reset:
            self.offset = 0
            self.items = []
            self.has_more = True
        if not self.has_more:
            return None
        page, error = self.api.fetch_items(self.offset, self.page_size, self.search)
        if error:
            self.last_error = error
            return error
        page = page or {}
        new_items = [
            dict(item, selected=item["id"] in self.selected_ids)
            for item in page.get("items", [])
        ]
        self.items.extend(new_items)
        self.offset += len(new_items)
        self.has_more = bool(page.get("hasMore"))
        return None

    def set_search(self, term: str) -> Optional[Error]:
        """Change the search term and reload from the first page."""
        if term == self.search:
            return None
        self.search = term
        return self.load_page(reset=True)

    def _apply_selection(self, item_id: int, selected: bool) -> None:
        if selected:
            self.selected_ids.add(item_id)
        else:
            self.selected_ids.discard(item_id)
        for item in self.items:
            if item["id"] == item_id:
                item["selected"] = selected

    def select(self, item_id: int, selected: bool) -> Optional[Error]:
        """Select or deselect an item, reverting locally if the server fails."""
        previous = item_id in self.selected_ids
        self._apply_selection(item_id, selected)
        _, error = self.api.select_item(item_id, selected)
        if error:
            logger.error("Selecting item %s failed: %s", item_id, error["message"])
            self._apply_selection(item_id, previous)
            self.last_error = error
            return error
        return None

    def move(self, old_index: int, new_index: int) -> Optional[Error]:
        """Move the loaded item at ``old_index`` to ``new_index``.

        Indexes refer to :attr:`items`; the request sent to the server
        uses the items' ``globalIndex``.  The local list is changed first
        and restored if the server rejects the move.  On success the
        ``globalIndex`` of every loaded item is updated to match the
        server's order.
        """
        if old_index == new_index:
            return None
        if not (0 <= old_index < len(self.items) and 0 <= new_index < len(self.items)):
            raise IndexError("item index out of range")

        source = self.items[old_index]["globalIndex"]
        target = self.items[new_index]["globalIndex"]
        previous = [dict(item) for item in self.items]

        moved = self.items.pop(old_index)
        self.items.insert(new_index, moved)

        _, error = self.api.reorder_items(source, target)
        if error:
            logger.error("Reordering %s -> %s failed: %s", source, target, error["message"])
            self.items = previous
            self.last_error = error
            return error
        for item in self.items:
            item["globalIndex"] = shifted_position(item["globalIndex"], source, target)
        return None

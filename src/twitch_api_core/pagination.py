"""Lazy cursor-based pagination over the execution engine.

Example:
    ```python
    paginator = engine.paginate(GetBannedUsersRequest(broadcaster_id="1234"))

    async for banned in paginator:
        print(banned.user_name)

    # or page by page
    async for page in paginator.pages():
        print(len(page.data), page.cursor)
    ```

Pages are fetched strictly one at a time and only when the consumer asks
for more. If a page fails, every item of the earlier pages has already been
yielded and the error is raised in place of the next item; no later page is
requested. Iterating again starts over from the original request.
"""

import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from twitch_api_core.request import Request

if TYPE_CHECKING:
    from twitch_api_core.engine import ExecutionEngine

logger = logging.getLogger(__name__)

PageT = TypeVar("PageT")


class Paginator(Generic[PageT]):
    """Walk a paginated endpoint page by page.

    Args:
        engine: Engine that executes each page request.
        request: First-page request. Its cursor field is cleared.

    Raises:
        TypeError: If the request's endpoint is not paginated.
    """

    def __init__(self, engine: "ExecutionEngine", request: Request[PageT]) -> None:
        if not request.endpoint.paginated:
            raise TypeError(f"{type(request).__name__} does not describe a paginated endpoint")
        self.engine = engine
        self.request = request.with_cursor(None)

    async def pages(self) -> AsyncIterator[PageT]:
        """Yield decoded pages until the server stops sending a cursor."""
        request = self.request
        page_number = 0
        while True:
            page_number += 1
            page = await self.engine.execute(request)
            logger.debug(f"Fetched page {page_number} of {request.endpoint.path}")
            yield page

            cursor = page.cursor
            if cursor is None:
                return
            request = request.with_cursor(cursor)

    async def _items(self) -> AsyncIterator[Any]:
        async for page in self.pages():
            for item in page.items:
                yield item

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._items()

    async def collect(self, limit: int | None = None) -> list[Any]:
        """Drain items into a list, stopping after ``limit`` items if given.

        No page beyond the one holding the last requested item is fetched.
        """
        items: list[Any] = []
        if limit is not None and limit <= 0:
            return items
        iterator = self._items()
        try:
            async for item in iterator:
                items.append(item)
                if limit is not None and len(items) >= limit:
                    break
        finally:
            await iterator.aclose()
        return items

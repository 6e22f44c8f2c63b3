from __future__ import annotations

from typing import Protocol

from beatcut.core.models import Orientation


class IQueryRewriter(Protocol):
    """Turns narration text into concise visual stock-search terms.

    Implementations may call external LLMs. On any failure they should
    return the raw text unchanged.
    """

    async def rewrite(self, text: str, orientation: Orientation) -> str:
        ...

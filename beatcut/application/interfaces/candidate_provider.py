from __future__ import annotations

from typing import List, Protocol

from beatcut.core.models import AssetType, Candidate, Orientation


class ICandidateProvider(Protocol):
    """Searches a stock-media library for candidates matching a query.

    Implementations may call Pexels, Pixabay, etc. They must tolerate
    provider failures and return an empty list instead of raising.
    """

    name: str

    async def search(
        self,
        query: str,
        asset_kind: AssetType,
        orientation_hint: Orientation,
    ) -> List[Candidate]:
        """Return candidates of ``asset_kind`` in provider order (possibly empty)."""
        ...

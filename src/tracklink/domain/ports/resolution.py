"""Port for translating a reference-platform id into other platforms' ids."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tracklink.domain.model import Platform, PlatformLink


class LinkResolutionError(RuntimeError):
    """Raised when a lookup fails for a whole track.

    Covers transport errors, non-2xx responses and payloads that cannot be
    parsed. No partial platform data accompanies this error.
    """


@runtime_checkable
class LinkResolver(Protocol):
    async def resolve(self, reference_id: str) -> dict[Platform, PlatformLink]:
        """Return the target platforms on which the track was found.

        Platforms the track does not exist on are omitted.
        """
        ...

    async def aclose(self) -> None:
        """Release any HTTP session held across calls."""
        ...

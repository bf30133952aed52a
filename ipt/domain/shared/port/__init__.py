from typing import Protocol


class Port(Protocol):
    """Marker for interfaces the domain expects its collaborators to implement."""

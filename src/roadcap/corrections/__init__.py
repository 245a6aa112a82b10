"""Manual network corrections."""

from .network_corrections import NetworkCorrections
from .network_corrector import (
    MissingNetworkElementsError,
    apply_network_corrections,
    find_missing_links,
)

__all__ = [
    "MissingNetworkElementsError",
    "NetworkCorrections",
    "apply_network_corrections",
    "find_missing_links",
]

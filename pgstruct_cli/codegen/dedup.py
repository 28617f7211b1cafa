"""Duplicate structure suppression for one generator run."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class NameCollision:
    """A discarded object whose signature differs from the one kept."""
    struct_name: str
    kept: str
    discarded: str


class Deduplicator:
    """Admits each generated structure name once per run.

    Catalog listings return one row per grantee when no application user is
    given, and one row per overload for overloaded functions. The first row
    seen for a name wins and later rows are discarded. Rows whose
    ``signature`` differs from the admitted one are not mere grantee
    repeats; they are recorded in :attr:`collisions` and logged.
    """

    def __init__(self):
        self._seen: Dict[str, Optional[str]] = {}
        self.collisions: List[NameCollision] = []

    def admit(self, struct_name: str, signature: Optional[str] = None) -> bool:
        """Return True the first time ``struct_name`` is seen, False after."""
        if struct_name not in self._seen:
            self._seen[struct_name] = signature
            return True

        kept = self._seen[struct_name]
        if signature is not None and kept is not None and signature != kept:
            if not any(c.struct_name == struct_name and c.discarded == signature for c in self.collisions):
                self.collisions.append(NameCollision(struct_name, kept, signature))
                logger.warning(
                    "Structure %s already generated for %s; discarding %s",
                    struct_name,
                    kept,
                    signature,
                )
        return False

    def reset(self) -> None:
        self._seen.clear()
        self.collisions.clear()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, struct_name: str) -> bool:
        return struct_name in self._seen

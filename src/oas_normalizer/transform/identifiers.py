"""Operation identifier synthesis.

Operations without an ``operationId`` get one derived from the HTTP method
and the path template; collisions are resolved with numeric suffixes.
"""

import re

from oas_normalizer.errors import UniquenessExhausted

_INVALID_CHARS = re.compile(r"[^0-9A-Za-z_]")


def candidate_operation_id(method: str, path: str, separator: str = "_") -> str:
    """Build the base identifier for ``method`` + ``path``.

    >>> candidate_operation_id("GET", "/accounts/{account_id}/zones")
    'get_accounts_account_id_zones'
    """
    segments = []
    for segment in path.split("/"):
        segment = _INVALID_CHARS.sub("_", segment.replace("{", "").replace("}", ""))
        if segment:
            segments.append(segment)
    return separator.join([method.lower(), *segments])


class IdentifierRegistry:
    """Identifiers already taken within one normalization run."""

    def __init__(self, separator: str = "_", max_suffix: int = 100_000):
        self.separator = separator
        self.max_suffix = max_suffix
        self._taken: set[str] = set()

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._taken

    def __len__(self) -> int:
        return len(self._taken)

    def reserve(self, identifier: str) -> bool:
        """Register an existing identifier. Returns False if it was already taken."""
        if identifier in self._taken:
            return False
        self._taken.add(identifier)
        return True

    def claim(self, candidate: str, location: str = "") -> str:
        """Register and return ``candidate``, or the first free ``candidate_N``."""
        identifier = candidate
        suffix = 1
        while identifier in self._taken:
            suffix += 1
            if suffix > self.max_suffix:
                raise UniquenessExhausted(
                    f"no free suffix for operation id {candidate!r} up to {self.max_suffix}",
                    location,
                )
            identifier = f"{candidate}{self.separator}{suffix}"
        self._taken.add(identifier)
        return identifier

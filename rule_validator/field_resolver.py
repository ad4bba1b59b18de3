from collections.abc import Mapping
from typing import Any

PATH_SEPARATOR = "."


class FieldResolver:
    """Resolves dot-separated field paths against nested input data"""

    def __init__(self, data: Mapping):
        self.data = data

    def has_field(self, path: str) -> bool:
        """
        Check whether a field path resolves.

        Walks the path one segment at a time from the top-level mapping and
        stops at the first missing key. Only mappings are traversed: a path
        that runs into a list or a scalar before its last segment does not
        resolve.
        """
        current = self.data
        for segment in path.split(PATH_SEPARATOR):
            if not isinstance(current, Mapping) or segment not in current:
                return False
            current = current[segment]
        return True

    def get_field(self, path: str) -> Any:
        """
        Get the value at a field path.

        Callers check ``has_field`` first; an unresolvable path raises
        ``KeyError`` or ``TypeError``.
        """
        current = self.data
        for segment in path.split(PATH_SEPARATOR):
            current = current[segment]
        return current

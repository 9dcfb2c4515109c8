# =============================================================================
# Imports
# =============================================================================
from typing import Dict, Iterator, Mapping, Optional, Tuple


# =============================================================================
# Classes
# =============================================================================
class HeaderSet:
    """
    Ordered collection of response headers keyed case-insensitively.

    Setting a header that is already present (in any letter case) replaces
    its value but keeps the spelling and position under which it was first
    added, so resource-specific headers can override the defaults without
    producing duplicates.
    """

    def __init__(self, headers: Optional[Mapping[str, str]] = None):
        self._names: Dict[str, str] = {}
        self._values: Dict[str, str] = {}
        if headers:
            for (name, value) in headers.items():
                self.set_header(name, value)

    def set_header(self, name: str, value: str) -> None:
        key = name.lower()
        name = self._names.setdefault(key, name)
        self._values[name] = value

    def get_header(self, name: str) -> Optional[str]:
        name = self._names.get(name.lower())
        if name is None:
            return None
        return self._values[name]

    def contains_header(self, name: str) -> bool:
        return name.lower() in self._names

    def remove_header(self, name: str) -> None:
        name = self._names.pop(name.lower(), None)
        if name is not None:
            del self._values[name]

    def update(self, headers: Mapping[str, str]) -> None:
        for (name, value) in headers.items():
            self.set_header(name, value)

    def __contains__(self, name):
        return self.contains_header(name)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._values.items()))

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return '<HeaderSet %r>' % self._values


# =============================================================================
# Helpers
# =============================================================================
def get_request_header(
    headers: Optional[Mapping[str, str]], name: str
) -> Optional[str]:
    """
    Looks up a request header by name, ignoring case.

    Args:

        headers (Mapping): Supplies the request headers, or None.

        name (str): Supplies the name of the header.

    Returns:

        str: The header value with surrounding whitespace removed, or None
            if the header was not sent.

    """
    if not headers:
        return None

    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    if value is None:
        lower_name = name.lower()
        for (key, candidate) in headers.items():
            if key.lower() == lower_name:
                value = candidate
                break
    if value is None:
        return None
    return value.strip()

# vim:set ts=8 sw=4 sts=4 tw=78 et:                                           #

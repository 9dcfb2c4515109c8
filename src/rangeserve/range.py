# =============================================================================
# Imports
# =============================================================================
import re
from operator import attrgetter
from typing import Callable, Iterable, List, Optional, Tuple

from rangeserve.exceptions import (
    IncompatibleRanges,
    InvalidHeader,
    InvalidRange,
    LengthUnavailable,
    Unsatisfiable,
)

# =============================================================================
# Globals
# =============================================================================
DEFAULT_MAX_RANGES = 10

# Unit is everything up to the first '=' or whitespace; the separator is '='
# (optionally padded) or plain whitespace; the remainder is the range list.
HEADER_PARSE_REGEX = re.compile(
    r'^\s*(?P<unit>[^\s=]+)(?:\s*=\s*|\s+)(?P<ranges>.+)'
)

RANGE_PARSE_REGEX = re.compile(
    r'(?P<start>[0-9]*)\s*-\s*(?P<end>[0-9]*)'
)

get_start = attrgetter('start')


# =============================================================================
# Classes
# =============================================================================
class Range:
    """
    An immutable byte interval.

    A range is either in request form, where `end` may be omitted (meaning
    "to the end of the resource") and a negative `start` with no `end` means
    "the last -start bytes", or normalized, where both ends are absolute,
    inclusive offsets.  Only normalized ranges have a length and take part in
    overlap tests.
    """

    __slots__ = (
        '_start',
        '_end',
        '_normalized',
    )

    def __init__(self, start: int, end: Optional[int] = None):
        if end is not None:
            if end < 0:
                raise InvalidRange('End cannot be negative')
            if start > end:
                raise InvalidRange('Start cannot be larger than end')
            if start < 0:
                raise InvalidRange(
                    'A range with a negative start cannot specify an end'
                )

        self._start = start
        self._end = end
        self._normalized = start >= 0 and end is not None

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> Optional[int]:
        return self._end

    @property
    def normalized(self) -> bool:
        return self._normalized

    @property
    def length(self) -> int:
        if not self._normalized:
            raise LengthUnavailable(
                'Cannot retrieve length of a range that is not normalized'
            )
        return (self._end - self._start) + 1

    def try_normalize(self, size: int) -> Optional['Range']:
        """
        Resolves this range against a resource of `size` bytes.

        Args:

            size (int): Supplies the size of the resource in bytes.

        Returns:

            Range: The normalized range, which is this instance if it was
                already normalized and within bounds.  None if the range
                cannot be satisfied by a resource of this size.

        """
        start = self._start
        end = self._end

        if self._normalized:
            if start > size:
                return None
            if start == size or end < size:
                return self
            return Range(start, size - 1)

        if end is None:
            end = size - 1
        if start < 0:
            start = end + start + 1

        start = max(start, 0)
        if start > size or start > end:
            return None

        return Range(start, min(end, size - 1))

    def normalize(self, size: int) -> 'Range':
        normalized = self.try_normalize(size)
        if normalized is None:
            raise Unsatisfiable(
                'Not satisfiable by a resource of the specified size'
            )
        return normalized

    def _check_normalized(self, other: 'Range', action: str) -> None:
        if not self._normalized or not other._normalized:
            raise IncompatibleRanges(
                'Cannot %s ranges that have not been normalized' % action
            )

    def overlaps(self, other: 'Range') -> bool:
        self._check_normalized(other, 'test for overlap of')
        return self._start <= other._end and other._start <= self._end

    def combine(self, other: 'Range') -> 'Range':
        self._check_normalized(other, 'combine')
        if not (self._start <= other._end and other._start <= self._end):
            raise IncompatibleRanges('Cannot combine non-overlapping ranges')
        return Range(
            min(self._start, other._start),
            max(self._end, other._end),
        )

    def __eq__(self, other):
        if not isinstance(other, Range):
            return NotImplemented
        return self._start == other._start and self._end == other._end

    def __hash__(self):
        return hash((self._start, self._end))

    def __str__(self):
        if self._end is not None:
            return '%d-%d' % (self._start, self._end)
        if self._start >= 0:
            return '%d-' % self._start
        return '%d' % self._start

    def __repr__(self):
        return '<Range %s>' % str(self)


class RangeSet:
    """
    The unit and ranges parsed from a single Range request header, in the
    order they appeared.
    """

    __slots__ = (
        '_unit',
        '_ranges',
    )

    def __init__(self, unit: str, ranges: Iterable[Range]):
        self._unit = unit
        self._ranges = tuple(ranges)

    @property
    def unit(self) -> str:
        return self._unit

    @property
    def ranges(self) -> Tuple[Range, ...]:
        return self._ranges

    @classmethod
    def from_header(
        cls,
        header: Optional[str],
        max_ranges: int = DEFAULT_MAX_RANGES,
    ) -> Optional['RangeSet']:
        """
        Parses the value of a Range request header.

        Args:

            header (str): Supplies the raw header value, or None if the
                request did not carry one.

            max_ranges (int): Optionally supplies the maximum number of
                comma-separated range specifiers accepted.

        Returns:

            RangeSet: The parsed range set, or None if `header` is None.

        Raises:

            InvalidHeader: If the header or any range specifier is malformed,
                or if there are more than `max_ranges` specifiers.

        """
        if header is None:
            return None

        match = HEADER_PARSE_REGEX.match(header)
        if not match:
            raise InvalidHeader('Invalid header: Parse failure')

        specs = match.group('ranges').split(',')
        if len(specs) > max_ranges:
            raise InvalidHeader('Invalid header: Too many ranges')

        return cls(match.group('unit'), parse_range_specs(specs))

    @classmethod
    def from_request(
        cls,
        get_header: Callable[[str], Optional[str]],
        max_ranges: int = DEFAULT_MAX_RANGES,
    ) -> Optional['RangeSet']:
        return cls.from_header(get_header('Range'), max_ranges)

    def get_ranges_for_size(self, size: int) -> List[Range]:
        """
        Reduces the ranges in this set to the minimal list of normalized,
        non-overlapping ranges that a resource of `size` bytes can satisfy,
        ordered by start offset.

        Ranges that cannot be satisfied are dropped as long as at least one
        range survives.

        Raises:

            Unsatisfiable: If no range in the set can be satisfied.

        """
        ranges = []
        for r in self._ranges:
            r = r.try_normalize(size)
            if r is not None and r.start < size:
                ranges.append(r)

        if not ranges:
            raise Unsatisfiable(
                'No specified ranges are satisfiable by a resource of '
                'the specified size'
            )

        previous_count = None
        count = len(ranges)
        while count > 1 and count != previous_count:
            previous_count = count
            ranges = combine_overlapping_ranges(ranges)
            count = len(ranges)

        return ranges

    def __eq__(self, other):
        if not isinstance(other, RangeSet):
            return NotImplemented
        return self._unit == other._unit and self._ranges == other._ranges

    def __hash__(self):
        return hash((self._unit, self._ranges))

    def __str__(self):
        return '%s=%s' % (self._unit, ','.join(str(r) for r in self._ranges))

    def __repr__(self):
        return '<RangeSet %s>' % str(self)


# =============================================================================
# Helpers
# =============================================================================
def parse_range_specs(specs: Iterable[str]) -> List[Range]:
    result = []
    for (i, spec) in enumerate(specs):
        match = RANGE_PARSE_REGEX.fullmatch(spec.strip())
        if not match:
            raise InvalidHeader(
                'Invalid range format at position %d: Parse failure' % i,
                position=i,
            )

        (start, end) = match.group('start', 'end')
        if not start and not end:
            raise InvalidHeader(
                'Invalid range format at position %d: '
                'Start and end empty' % i,
                position=i,
            )

        if not start:
            result.append(Range(-int(end)))
        else:
            result.append(Range(int(start), int(end) if end else None))

    return result


def combine_overlapping_ranges(ranges: List[Range]) -> List[Range]:
    """
    Performs a single sort-and-merge pass over normalized ranges.  Each
    overlapping adjacent pair is replaced by its union; a range produced by
    a merge is not compared again until the next pass.
    """
    ranges = sorted(ranges, key=get_start)
    result = []
    i = 0
    count = len(ranges)
    while i < count:
        current = ranges[i]
        if i + 1 < count and current.overlaps(ranges[i + 1]):
            current = current.combine(ranges[i + 1])
            i += 1
        result.append(current)
        i += 1
    return result

# vim:set ts=8 sw=4 sts=4 tw=78 et:                                           #

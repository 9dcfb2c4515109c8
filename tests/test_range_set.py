import pytest
from rangeserve.exceptions import InvalidHeader, InvalidRange, Unsatisfiable
from rangeserve.range import DEFAULT_MAX_RANGES, Range, RangeSet


def test_create_from_none_returns_none():
    assert RangeSet.from_header(None) is None


def test_valid_single_range():
    rs = RangeSet.from_header('bytes=0-23')
    assert rs.unit == 'bytes'
    assert rs.ranges == (Range(0, 23),)
    ranges = rs.get_ranges_for_size(1000)
    assert ranges == [Range(0, 23)]
    assert ranges[0].length == 24


def test_suffix_range():
    rs = RangeSet.from_header('bytes=-23')
    assert rs.ranges == (Range(-23),)
    assert rs.get_ranges_for_size(1000) == [Range(977, 999)]


@pytest.mark.parametrize(
    'header',
    ['bytes=0-23', 'bytes=-23', 'bytes=0-', 'bytes=10-'],
)
def test_valid_single_ranges(header):
    rs = RangeSet.from_header(header)
    assert rs.unit == 'bytes'
    assert len(rs.get_ranges_for_size(1000)) == 1


@pytest.mark.parametrize(
    'header',
    ['bytes 0-23', 'bytes = 0-23', 'bytes = 0 - 23', '  bytes=0-23'],
)
def test_valid_single_ranges_variance(header):
    rs = RangeSet.from_header(header)
    assert rs.unit == 'bytes'
    assert rs.get_ranges_for_size(1000) == [Range(0, 23)]


def test_whitespace_around_range_specs():
    rs = RangeSet.from_header('bytes=0-1 , 5-6,  -2')
    assert rs.ranges == (Range(0, 1), Range(5, 6), Range(-2))


def test_unit_is_preserved():
    rs = RangeSet.from_header('items=0-3')
    assert rs.unit == 'items'


def test_overlapping_ranges_merge():
    ranges = RangeSet.from_header('bytes=0-23,15-43').get_ranges_for_size(1000)
    assert ranges == [Range(0, 43)]


def test_non_overlapping_ranges_stay_apart():
    ranges = RangeSet.from_header('bytes=0-23,30-43').get_ranges_for_size(1000)
    assert ranges == [Range(0, 23), Range(30, 43)]


def test_adjacent_ranges_are_not_merged():
    ranges = RangeSet.from_header('bytes=0-9,10-19').get_ranges_for_size(1000)
    assert ranges == [Range(0, 9), Range(10, 19)]


def test_ranges_are_sorted():
    rs = RangeSet.from_header('bytes=500-599,-10,0-9')
    assert rs.get_ranges_for_size(1000) == [
        Range(0, 9),
        Range(500, 599),
        Range(990, 999),
    ]


def test_chain_of_overlaps_reduces_to_one_range():
    rs = RangeSet.from_header('bytes=0-1,1-2,2-3,3-4,4-5')
    assert rs.get_ranges_for_size(1000) == [Range(0, 5)]


def test_overlaps_needing_several_passes():
    rs = RangeSet.from_header('bytes=0-10,5-20,15-30,25-40,35-50,45-60')
    assert rs.get_ranges_for_size(1000) == [Range(0, 60)]


def test_suffix_and_open_ranges_merge():
    rs = RangeSet.from_header('bytes=900-,-50,100-200')
    assert rs.get_ranges_for_size(1000) == [Range(100, 200), Range(900, 999)]


def test_unsatisfiable_ranges_are_dropped():
    rs = RangeSet.from_header('bytes=0-3,10-100,20-')
    assert rs.get_ranges_for_size(5) == [Range(0, 3)]


def test_range_starting_at_size_is_dropped():
    rs = RangeSet.from_header('bytes=0-1,5-10')
    assert rs.get_ranges_for_size(5) == [Range(0, 1)]


def test_no_matching_range_fails():
    with pytest.raises(Unsatisfiable):
        RangeSet.from_header('bytes=10-100').get_ranges_for_size(5)


def test_any_range_against_empty_resource_fails():
    with pytest.raises(Unsatisfiable):
        RangeSet.from_header('bytes=0-,-5').get_ranges_for_size(0)


def test_result_is_sorted_and_disjoint():
    rs = RangeSet.from_header(
        'bytes=700-750,10-20,-100,15-40,600-710,0-5,990-'
    )
    ranges = rs.get_ranges_for_size(1000)
    for (a, b) in zip(ranges, ranges[1:]):
        assert a.end < b.start
    assert ranges == [
        Range(0, 5),
        Range(10, 40),
        Range(600, 750),
        Range(900, 999),
    ]


def test_reduction_is_repeatable():
    rs = RangeSet.from_header('bytes=0-23,15-43,-10,100-')
    assert rs.get_ranges_for_size(1000) == rs.get_ranges_for_size(1000)


def test_ranges_number_limit():
    header = 'bytes=0-1,1-2,2-3,3-4,4-5'
    assert RangeSet.from_header(header, 5) is not None
    with pytest.raises(InvalidHeader) as excinfo:
        RangeSet.from_header(header, 4)
    assert excinfo.value.position is None


def test_default_ranges_number_limit():
    header = 'bytes=' + ','.join(['0-1'] * DEFAULT_MAX_RANGES)
    assert len(RangeSet.from_header(header).ranges) == DEFAULT_MAX_RANGES
    with pytest.raises(InvalidHeader):
        RangeSet.from_header(header + ',0-1')


def test_limit_is_checked_before_parsing():
    with pytest.raises(InvalidHeader, match='Too many ranges'):
        RangeSet.from_header('bytes=garbage,more,stuff', 2)


def test_invalid_header_syntax_fails():
    with pytest.raises(InvalidHeader):
        RangeSet.from_header('randomgarbage')


def test_missing_range_list_fails():
    with pytest.raises(InvalidHeader):
        RangeSet.from_header('bytes=')


def test_invalid_range_syntax_fails():
    with pytest.raises(InvalidHeader) as excinfo:
        RangeSet.from_header('bytes=randomgarbage')
    assert excinfo.value.position == 0


def test_invalid_range_position_is_reported():
    with pytest.raises(InvalidHeader) as excinfo:
        RangeSet.from_header('bytes=0-1,2-3,x-4')
    assert excinfo.value.position == 2
    assert 'position 2' in str(excinfo.value)


def test_empty_range_fails():
    with pytest.raises(InvalidHeader) as excinfo:
        RangeSet.from_header('bytes=-')
    assert excinfo.value.position == 0


def test_reversed_range_is_invalid():
    with pytest.raises(InvalidRange):
        RangeSet.from_header('bytes=500-100')
    with pytest.raises(InvalidRange):
        RangeSet.from_header('bytes=0-10,500-100')


def test_non_ascii_digits_are_rejected():
    with pytest.raises(InvalidHeader):
        RangeSet.from_header('bytes=١-٢')


def test_from_request_uses_injected_lookup():
    headers = {'Range': 'bytes=0-9'}
    rs = RangeSet.from_request(headers.get)
    assert rs == RangeSet('bytes', [Range(0, 9)])
    assert RangeSet.from_request({}.get) is None


def test_str_round_trip():
    rs = RangeSet.from_header('bytes = 0-23, -5 ,100-')
    assert str(rs) == 'bytes=0-23,-5,100-'
    assert RangeSet.from_header(str(rs)) == rs

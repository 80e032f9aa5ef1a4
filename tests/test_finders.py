import math

import pytest

from fragkit.finders import (
    FragmentPosition,
    ToleranceWindow,
    calculate_next_pdt,
    classify,
    find_fragment_by_pdt,
    find_fragment_by_sn,
)
from fragkit.models import Fragment, LevelDetails

BASE_PDT = 1705314600000.0  # 2024-01-15T10:30:00.000Z


def make_fragments(durations, start_sn=0, pdt=BASE_PDT):
    fragments = []
    start = 0.0
    for i, duration in enumerate(durations):
        fragments.append(Fragment(
            sn=start_sn + i,
            start=start,
            duration=duration,
            pdt=pdt + start * 1000 if pdt is not None else None,
        ))
        start += duration
    return fragments


# calculate_next_pdt

def test_next_pdt_chains_from_previous_fragment():
    fragments = make_fragments([10.0] * 5)
    level = LevelDetails(fragments=fragments)
    for k in range(len(fragments) - 1):
        assert calculate_next_pdt(0.0, 0.0, fragments[k], level) == fragments[k + 1].pdt


def test_next_pdt_prefers_previous_fragment_over_level_anchor():
    previous = Fragment(sn=3, start=30.0, duration=10.0, pdt=BASE_PDT)
    level = LevelDetails(program_date_time="2000-01-01T00:00:00Z")
    assert calculate_next_pdt(0.0, 40.0, previous, level) == BASE_PDT + 10000


def test_next_pdt_from_level_anchor():
    level = LevelDetails(program_date_time="2024-01-15T10:30:00.000Z")
    assert calculate_next_pdt(0.0, 25.0, None, level) == BASE_PDT + 25000
    assert calculate_next_pdt(5.0, 25.0, None, level) == BASE_PDT + 20000


@pytest.mark.parametrize("pdt", [None, 0])
def test_next_pdt_ignores_previous_fragment_without_pdt(pdt):
    previous = Fragment(sn=1, start=10.0, duration=10.0, pdt=pdt)
    level = LevelDetails(program_date_time="2024-01-15T10:30:00.000Z")
    assert calculate_next_pdt(0.0, 20.0, previous, level) == BASE_PDT + 20000


def test_next_pdt_without_any_pdt_is_zero():
    previous = Fragment(sn=1, start=10.0, duration=10.0)
    assert calculate_next_pdt(0.0, 20.0, previous, LevelDetails()) == 0
    assert calculate_next_pdt(0.0, 20.0, None, None) == 0


def test_next_pdt_with_malformed_anchor_is_zero():
    level = LevelDetails(program_date_time="yesterday at noon")
    assert calculate_next_pdt(0.0, 20.0, None, level) == 0


# find_fragment_by_pdt

@pytest.mark.parametrize("pdt_value", [None, 0, math.nan])
def test_pdt_lookup_without_target(pdt_value):
    assert find_fragment_by_pdt(make_fragments([10.0] * 3), pdt_value) is None


def test_pdt_lookup_without_fragments():
    assert find_fragment_by_pdt([], BASE_PDT) is None
    assert find_fragment_by_pdt(None, BASE_PDT) is None


def test_pdt_lookup_rejects_out_of_range_targets():
    fragments = make_fragments([10.0] * 3)
    assert find_fragment_by_pdt(fragments, BASE_PDT - 1) is None
    assert find_fragment_by_pdt(fragments, fragments[-1].end_pdt) is None
    assert find_fragment_by_pdt(fragments, fragments[-1].end_pdt + 5000) is None


def test_pdt_lookup_at_end_boundary_returns_next_fragment():
    fragments = make_fragments([10.0, 4.0, 6.0, 10.0])
    for i in range(len(fragments) - 1):
        assert find_fragment_by_pdt(fragments, fragments[i].end_pdt) is fragments[i + 1]


def test_pdt_lookup_returns_first_fragment_ending_after_target():
    fragments = make_fragments([10.0, 4.0, 6.0, 10.0])
    first, last = fragments[0].pdt, fragments[-1].end_pdt
    for pdt_value in range(int(first), int(last), 250):
        found = find_fragment_by_pdt(fragments, pdt_value)
        index = fragments.index(found)
        assert found.end_pdt > pdt_value
        assert all(frag.end_pdt <= pdt_value for frag in fragments[:index])


def test_pdt_lookup_at_first_fragment_start():
    fragments = make_fragments([10.0] * 3)
    assert find_fragment_by_pdt(fragments, BASE_PDT) is fragments[0]


def test_pdt_lookup_without_fragment_pdt():
    fragments = make_fragments([10.0] * 3, pdt=None)
    assert find_fragment_by_pdt(fragments, BASE_PDT) is None


# classify

def test_classify_buffer_end_just_before_boundary():
    fragments = make_fragments([10.0, 10.0])
    assert classify(fragments[0], 9.991, 0.25) == FragmentPosition.AFTER
    assert classify(fragments[1], 9.991, 0.25) == FragmentPosition.MATCH


def test_classify_fragment_after_buffer_end():
    frag = Fragment(sn=2, start=20.0, duration=10.0)
    assert classify(frag, 10.0, 0.25) == FragmentPosition.BEFORE


def test_classify_short_fragment_is_not_skipped():
    frag = Fragment(sn=1, start=10.0, duration=0.125)
    # A 0.25s tolerance would put the whole fragment behind the buffer end
    assert classify(frag, 9.9, 0.25) == FragmentPosition.MATCH
    assert classify(frag, 10.0, 0.25) == FragmentPosition.AFTER


def test_classify_tolerance_includes_delta_pts():
    drifted = Fragment(sn=1, start=10.0, duration=0.125, delta_pts=0.0625)
    plain = Fragment(sn=1, start=10.0, duration=0.125)
    assert classify(drifted, 9.95, 0.25) == FragmentPosition.AFTER
    assert classify(plain, 9.95, 0.25) == FragmentPosition.MATCH


@pytest.mark.parametrize("tolerance", [0.0, 0.25, 5.0, -0.5, -20.0])
@pytest.mark.parametrize("buffer_end", [-30.0, -0.5, 0.0, 3.0, 9.9])
def test_classify_never_puts_zero_start_fragment_before(buffer_end, tolerance):
    frag = Fragment(sn=0, start=0.0, duration=10.0)
    assert classify(frag, buffer_end, tolerance) != FragmentPosition.BEFORE


@pytest.mark.parametrize("tolerance", [0.0, 0.1, 0.25, 1.0, -0.5])
def test_classify_after_results_form_a_prefix(tolerance):
    fragments = make_fragments([10.0, 0.5, 4.0, 10.0, 0.125, 6.0])
    for step in range(-20, 700):
        buffer_end = step * 0.05
        results = [classify(frag, buffer_end, tolerance) for frag in fragments]
        after_count = results.count(FragmentPosition.AFTER)
        assert results[:after_count] == [FragmentPosition.AFTER] * after_count
        assert FragmentPosition.AFTER not in results[after_count:]


def test_tolerance_window_matches_classify():
    fragments = make_fragments([10.0, 10.0, 10.0])
    window = ToleranceWindow(buffer_end=12.0, max_lookup_tolerance=0.25)
    for frag in fragments:
        assert window(frag) == window.classify(frag) == classify(frag, 12.0, 0.25)


# find_fragment_by_sn

def test_sn_lookup_returns_none_at_end_of_stream():
    fragments = make_fragments([10.0])
    assert find_fragment_by_sn(None, fragments, 10.0, 10.0, 0.25) is None
    assert find_fragment_by_sn(fragments[0], fragments, 12.0, 10.0, 0.25) is None


def test_sn_lookup_skips_fragment_ending_within_tolerance():
    fragments = make_fragments([10.0, 10.0])
    assert find_fragment_by_sn(None, fragments, 9.991, 20.0, 0.25) is fragments[1]


def test_sn_lookup_prefers_next_fragment():
    fragments = make_fragments([10.0] * 5)
    found = find_fragment_by_sn(fragments[2], fragments, 30.1, 50.0, 0.25)
    assert found is fragments[3]


def test_sn_lookup_next_fragment_with_sequence_offset():
    fragments = make_fragments([10.0] * 5, start_sn=100)
    found = find_fragment_by_sn(fragments[1], fragments, 20.0, 50.0, 0.25)
    assert found.sn == 102


def test_sn_lookup_searches_when_next_fragment_is_stale():
    fragments = make_fragments([10.0] * 5)
    found = find_fragment_by_sn(fragments[0], fragments, 35.0, 50.0, 0.25)
    assert found is fragments[3]


def test_sn_lookup_searches_when_previous_is_last_fragment():
    fragments = make_fragments([10.0] * 5)
    found = find_fragment_by_sn(fragments[4], fragments, 45.0, 50.0, 0.25)
    assert found is fragments[4]


def test_sn_lookup_previous_fragment_outside_window():
    fragments = make_fragments([10.0] * 5, start_sn=10)
    previous = Fragment(sn=3, start=0.0, duration=10.0)
    found = find_fragment_by_sn(previous, fragments, 12.0, 50.0, 0.25)
    assert found is fragments[1]


def test_sn_lookup_drops_tolerance_near_end():
    fragments = make_fragments([10.0, 10.0])
    # With tolerance the last fragment would be classified as already buffered
    assert classify(fragments[1], 19.9, 0.25) == FragmentPosition.AFTER
    assert find_fragment_by_sn(None, fragments, 19.9, 20.0, 0.25) is fragments[1]


def test_sn_lookup_without_previous_fragment():
    fragments = make_fragments([10.0, 0.5, 4.0, 10.0])
    assert find_fragment_by_sn(None, fragments, 0.0, 24.5, 0.25) is fragments[0]
    assert find_fragment_by_sn(None, fragments, 12.0, 24.5, 0.25) is fragments[2]


def test_sn_lookup_searches_after_backward_seek():
    fragments = make_fragments([10.0] * 10)
    # The fragment after the previous one starts well beyond the buffer end
    assert classify(fragments[6], 5.0, 0.25) == FragmentPosition.BEFORE
    assert find_fragment_by_sn(fragments[5], fragments, 5.0, 100.0, 0.25) is fragments[0]
    assert find_fragment_by_sn(fragments[4], fragments, 12.0, 100.0, 0.25) is fragments[1]


def test_pdt_lookup_treats_zero_first_pdt_as_undated():
    fragments = make_fragments([10.0] * 3, pdt=0.0)
    assert find_fragment_by_pdt(fragments, 5000.0) is None

import itertools

import pytest

from tickbar import progress, ConfigurationError


def test_progress_wrapper_yields_items(stream, clock):
    items = list(range(4))
    seen = []
    for item in progress(items, format=':current/:total', stream=stream,
                         force=True, show_after=0, width=20):
        seen.append(item)
    assert seen == items
    assert stream.getvalue() == '\r0/4\r1/4\r2/4\r3/4\r4/4\r' + ' ' * 20 + '\r'


def test_progress_wrapper_with_explicit_total(stream, clock):
    items = itertools.islice(itertools.count(), 3)
    seen = list(progress(items, total=3, format=':percent', stream=stream,
                         force=True, show_after=0, width=20, clear=False))
    assert seen == [0, 1, 2]
    assert stream.getvalue().endswith('100%\n')


def test_progress_wrapper_needs_total_for_iterators(stream):
    with pytest.raises(ConfigurationError):
        list(progress(iter([1, 2]), stream=stream))


def test_progress_wrapper_empty(stream, clock):
    assert list(progress([], stream=stream, force=True, show_after=0)) == []
    assert stream.getvalue() == ''


def test_progress_wrapper_item_tokens(stream, clock):
    seen = list(progress(['a', 'b'], format='item :item', stream=stream,
                         force=True, show_after=0, width=20, clear=False,
                         tokens=lambda item: {'item': item}))
    assert seen == ['a', 'b']
    assert stream.getvalue() == '\ritem a\ritem b\n'


def test_progress_wrapper_terminates_on_break(stream, clock):
    for item in progress(range(10), format=':current', stream=stream,
                         force=True, show_after=0, width=20, clear=False):
        if item == 2:
            break
    assert stream.getvalue() == '\r0\r1\r2\n'


def test_progress_wrapper_stops_ticking_past_total(stream, clock):
    seen = list(progress(range(5), total=3, format=':current', stream=stream,
                         force=True, show_after=0, width=20, clear=False))
    assert seen == [0, 1, 2, 3, 4]
    assert stream.getvalue() == '\r0\r1\r2\r3\n'


def test_progress_wrapper_item_tokens_count_show_after_from_start(stream, clock):
    for _ in progress(['a', 'b', 'c'], format='item :item', stream=stream,
                      force=True, show_after=1, width=20, clear=False,
                      tokens=lambda item: {'item': item}):
        clock.advance(0.6)
    assert stream.getvalue() == '\ritem b\ritem c\n'

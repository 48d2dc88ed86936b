from __future__ import annotations

from unittest.mock import Mock

import pytest

from collection_curator.application.errors import FetchFailure
from collection_curator.application.pagination import fetch_all, paginate
from collection_curator.domain.catalog.models import Page


def _pages(*pages: Page):
    fetch = Mock(side_effect=list(pages))
    return fetch


def test_paginate_follows_cursor_until_exhausted():
    fetch = _pages(
        Page(records=[1, 2], next_cursor="c1"),
        Page(records=[3], next_cursor="c2"),
        Page(records=[4, 5], next_cursor=None),
    )

    assert list(paginate(fetch, page_size=2)) == [1, 2, 3, 4, 5]
    assert [call.args for call in fetch.call_args_list] == [(2, None), (2, "c1"), (2, "c2")]


def test_paginate_single_empty_page():
    fetch = _pages(Page(records=[], next_cursor=None))
    assert list(paginate(fetch)) == []
    fetch.assert_called_once_with(250, None)


def test_paginate_is_lazy():
    fetch = _pages(Page(records=[1], next_cursor="c1"), Page(records=[2], next_cursor=None))

    iterator = paginate(fetch, page_size=1)
    assert fetch.call_count == 0
    assert next(iterator) == 1
    assert fetch.call_count == 1


@pytest.mark.parametrize("page_size", [0, 251, -1])
def test_paginate_rejects_page_size_out_of_range(page_size):
    fetch = Mock()
    with pytest.raises(ValueError):
        list(paginate(fetch, page_size=page_size))
    fetch.assert_not_called()


def test_failure_mid_sequence_aborts_with_fetch_failure():
    fetch = Mock(side_effect=[Page(records=[1], next_cursor="c1"), TimeoutError("read timed out")])

    with pytest.raises(FetchFailure) as exc_info:
        fetch_all(fetch, page_size=1)

    assert exc_info.value.cursor == "c1"
    assert exc_info.value.pages_fetched == 1
    assert isinstance(exc_info.value.__cause__, TimeoutError)


def test_fetch_all_materializes_records():
    fetch = _pages(Page(records=["a"], next_cursor="x"), Page(records=["b"], next_cursor=None))
    assert fetch_all(fetch, page_size=1, label="items") == ["a", "b"]

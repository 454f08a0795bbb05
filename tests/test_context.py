"""Tests for RequestContext."""

from datetime import timedelta

import pytest

from identity_store import CanceledError, DeadlineExceededError, Pagination, RequestContext


def test_defaults():
    ctx = RequestContext()
    assert ctx.pagination == Pagination(limit=0, offset=0)
    assert ctx.include_deleted is False
    assert ctx.metadata == {}
    assert ctx.total is None
    assert ctx.err() is None


def test_cancel():
    ctx = RequestContext()
    ctx.cancel()
    assert isinstance(ctx.err(), CanceledError)
    with pytest.raises(CanceledError):
        ctx.raise_for_cancel()


def test_deadline(clock):
    ctx = RequestContext(deadline=clock.now() + timedelta(seconds=5), clock=clock)
    ctx.raise_for_cancel()

    clock.advance(5)
    err = ctx.err()
    assert isinstance(err, DeadlineExceededError)
    assert isinstance(err, CanceledError)
    assert err.deadline == ctx.deadline


def test_with_pagination_copies():
    ctx = RequestContext(metadata={"k": "v"})
    paged = ctx.with_pagination(10, 20)
    assert paged.pagination == Pagination(limit=10, offset=20)
    assert paged.metadata == {"k": "v"}
    assert ctx.pagination == Pagination()


def test_negative_pagination_rejected():
    with pytest.raises(ValueError):
        Pagination(limit=-1)
    with pytest.raises(ValueError):
        Pagination(offset=-5)


def test_set_total_overwrites():
    ctx = RequestContext()
    ctx.set_total(37)
    ctx.set_total(38)
    assert ctx.total == 38

import time

import pytest

from sui_ptb.context import Context
from sui_ptb.errors import BuildCancelled


def test_background_context_never_expires():
    ctx = Context.background()
    assert ctx.remaining() is None
    ctx.check("anything")


def test_cancel_raises_on_check():
    ctx = Context.background()
    ctx.cancel()
    assert ctx.cancelled
    with pytest.raises(BuildCancelled, match="cancelled before lookup"):
        ctx.check("lookup")


def test_expired_deadline_raises():
    ctx = Context(deadline=time.monotonic() - 1)
    assert ctx.remaining() == 0.0
    with pytest.raises(BuildCancelled, match="deadline exceeded"):
        ctx.check()


def test_child_shares_cancellation_and_never_extends_deadline():
    parent = Context.with_timeout(5)
    child = parent.child(60)
    assert child.deadline == parent.deadline

    shorter = parent.child(1)
    assert shorter.deadline < parent.deadline

    parent.cancel()
    with pytest.raises(BuildCancelled):
        child.check()

"""Pytest configuration and shared fixtures."""
import asyncio

import pytest

from formstate import Form, FormConfig


class SubmitRecorder:
    """on_submit stand-in that records every values snapshot it receives."""

    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def __call__(self, values):
        self.calls.append(dict(values))
        return self.result


class Event:
    """Minimal DOM-like event with default-action/propagation hooks."""

    def __init__(self):
        self.default_prevented = False
        self.propagation_stopped = False

    def prevent_default(self):
        self.default_prevented = True

    def stop_propagation(self):
        self.propagation_stopped = True


def non_empty(value):
    """Synchronous validator: valid when the string is not empty."""
    return len(value) > 0


async def async_min_length(value):
    """Async validator: valid at three or more characters, slower for shorter input."""
    await asyncio.sleep(0.01 * max(0, 4 - len(value)))
    return len(value) >= 3


@pytest.fixture
def on_submit():
    return SubmitRecorder()


@pytest.fixture
def form(on_submit):
    """Two-field form with no validators registered."""
    return Form({"a": "", "b": ""}, FormConfig(on_submit=on_submit))


@pytest.fixture
def event():
    return Event()

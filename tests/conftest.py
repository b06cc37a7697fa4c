"""Pytest fixtures: an in-memory upstream node."""

import asyncio
import copy

import pytest


class FakeUpstream:
    """Records every call; answers from a handler or a canned ``results`` map."""

    def __init__(self, handler=None, results=None, height=0):
        self.handler = handler
        self.results = results or {}
        self.height = height
        self.height_error = None
        self.calls = []
        self.height_calls = 0
        self.closed = False

    async def send(self, method, params=None):
        self.calls.append((method, copy.deepcopy(params)))
        await asyncio.sleep(0)
        if self.handler is not None:
            outcome = self.handler(method, params)
            if asyncio.iscoroutine(outcome):
                outcome = await outcome
        else:
            outcome = self.results.get(method)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def current_block_height(self):
        self.height_calls += 1
        if self.height_error is not None:
            raise self.height_error
        return self.height

    async def aclose(self):
        self.closed = True

    def calls_for(self, method):
        return [params for name, params in self.calls if name == method]


@pytest.fixture
def upstream():
    return FakeUpstream()

"""Pytest configuration and fixtures for rolegate tests."""

import asyncio
from dataclasses import dataclass
from typing import Optional

import pytest

from rolegate import Gate, InMemoryGrantStore, MemoryGrantCache


@dataclass
class User:
    """Host-side principal model."""
    id: Optional[int] = None


@dataclass
class Post:
    """Host-side model used as a grant target."""
    id: Optional[int] = None


@dataclass
class Comment:
    id: Optional[int] = None


class CountingStore(InMemoryGrantStore):
    """In-memory store that counts graph walks."""

    def __init__(self):
        super().__init__()
        self.walks = 0

    async def roles_of(self, principal):
        self.walks += 1
        return await super().roles_of(principal)


class PausingStore(InMemoryGrantStore):
    """In-memory store that can suspend one graph walk after reading roles."""

    def __init__(self):
        super().__init__()
        self.pause_next = False
        self.paused = asyncio.Event()
        self.resume = asyncio.Event()

    async def roles_of(self, principal):
        roles = await super().roles_of(principal)
        if self.pause_next:
            self.pause_next = False
            self.paused.set()
            await self.resume.wait()
        return roles


@pytest.fixture
def store():
    return CountingStore()


@pytest.fixture
def cache():
    return MemoryGrantCache()


@pytest.fixture
def gate(store, cache):
    """Gate over a counting in-memory store and memory cache."""
    return Gate(store=store, cache=cache)


@pytest.fixture
def user1():
    return User(id=1)


@pytest.fixture
def user2():
    return User(id=2)


@pytest.fixture
def post():
    return Post(id=10)

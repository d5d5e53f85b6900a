"""Unique identifier generation."""

import uuid
from typing import Protocol


class Uuid(Protocol):
    """Source of unique identifiers, injectable for tests."""

    def next_uuid(self) -> str:
        ...


class RandomUuid:
    """Random UUID4 source."""

    def next_uuid(self) -> str:
        return generate_uuid()


def generate_uuid() -> str:
    """Generate a random identifier usable as a Docker image name or tag."""
    # Image names must be lowercase; uuid4 hex already is
    return uuid.uuid4().hex

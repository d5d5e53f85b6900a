"""Container orchestration: builders and started/stopped handles."""

from .generic import GenericContainer, StartedGenericContainer
from .build import GenericContainerBuilder

__all__ = [
    "GenericContainer",
    "GenericContainerBuilder",
    "StartedGenericContainer",
]

"""Utility modules for testbox."""

from .logging import setup_logging
from .id_generator import RandomUuid, Uuid, generate_uuid
from .concurrency import run_in_executor

__all__ = [
    "setup_logging",
    "RandomUuid",
    "Uuid",
    "generate_uuid",
    "run_in_executor",
]

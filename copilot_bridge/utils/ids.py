"""Identifier generation. Callers take an ``IdFactory`` so tests can pin ids."""

import uuid
from collections.abc import Callable

IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid.uuid4())

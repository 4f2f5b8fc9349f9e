from __future__ import annotations

from typing import Any

from .dataset import Dataset


class Relation:
    """A topic viewed as a relation over its dataset.

    ``where(partition=1)`` narrows the relation to a partition (and/or
    ``offset``) without touching the original.
    """

    def __init__(self, dataset: Dataset) -> None:
        self.dataset = dataset

    @property
    def name(self) -> str:
        return self.dataset.topic

    def where(self, **scope: Any) -> "Relation":
        return type(self)(self.dataset.using(**scope))

    def __repr__(self) -> str:
        return f"Relation({self.dataset!r})"

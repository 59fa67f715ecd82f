from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from slugify import slugify

"""Attribute / meta column models and the attribute-name accumulator.

WooCommerce exports every product attribute as a group of columns
(``Attribute N name``, ``Attribute N value(s)``, ``Attribute N visible`` ...).
The mappings below record where those columns sit in the header so rows can be
read positionally.

The accumulator collects every distinct attribute label seen while building
translation batches. It is passed into and returned from each extraction call
instead of living in module state, so two runs never share labels.
"""

__all__ = [
    "AttributeColumnMapping",
    "MetaColumnMapping",
    "TranslatableAttribute",
    "AttributeName",
    "AttributeNameAccumulator",
]


@dataclass(frozen=True)
class AttributeColumnMapping:
    """Positions of one attribute's columns in the header.

    Attributes:
        attribute_number: The N in ``Attribute N value(s)`` (kept as text, e.g. "10")
        value_index: Index of ``Attribute N value(s)``
        name_index: Index of ``Attribute N name`` or -1 when the column is absent
    """
    attribute_number: str
    value_index: int
    name_index: int = -1

    @property
    def label_column(self) -> str:
        """Synthesized label used when the export has no name column."""
        return f"Attribute {self.attribute_number}"


@dataclass(frozen=True)
class MetaColumnMapping:
    key: str  # full header, e.g. "Meta: _yoast_wpseo_focuskw"
    value_index: int


@dataclass(frozen=True)
class TranslatableAttribute:
    attribute_number: str
    key: str  # attribute label (context for the value)
    value: str

    def compound(self) -> str:
        """Render as ``"Label: Value"`` or an empty string for an empty value."""
        return f"{self.key}: {self.value}" if self.value else ""


@dataclass(frozen=True)
class AttributeName:
    name: str
    slug: str
    translated_name: str | None = None

    @staticmethod
    def from_label(label: str) -> AttributeName:
        return AttributeName(name=label, slug=slugify(label, lowercase=True))

    def to_payload(self) -> dict[str, str | None]:
        """JSON shape exchanged with the generation service."""
        return {"name": self.name, "slug": self.slug, "translatedName": self.translated_name}


class AttributeNameAccumulator:
    """Ordered, de-duplicated (by label) collection of AttributeName entries.

    Operations return new accumulators; an instance is never mutated after
    construction.
    """

    def __init__(self, names: Iterable[AttributeName] = ()) -> None:
        self._names: dict[str, AttributeName] = {}
        for n in names:
            if n.name not in self._names:
                self._names[n.name] = n

    def observe(self, labels: Iterable[str]) -> AttributeNameAccumulator:
        """Return an accumulator that also contains every new label in ``labels``."""
        added = [AttributeName.from_label(label) for label in labels if label not in self._names]
        if not added:
            return self
        return AttributeNameAccumulator([*self._names.values(), *added])

    def merge(self, other: AttributeNameAccumulator) -> AttributeNameAccumulator:
        """Union keeping this accumulator's entries first."""
        return AttributeNameAccumulator([*self._names.values(), *other.names])

    def with_translations(self, translated: Iterable[AttributeName]) -> AttributeNameAccumulator:
        """Return a copy where ``translated_name`` is filled from ``translated`` (matched by name)."""
        by_name = {t.name: t.translated_name for t in translated if t.translated_name}
        return AttributeNameAccumulator(
            replace(n, translated_name=by_name.get(n.name, n.translated_name))
            for n in self._names.values()
        )

    @property
    def names(self) -> list[AttributeName]:
        return list(self._names.values())

    def labels_by_slug(self) -> dict[str, str]:
        """slug -> translated label for every translated entry."""
        return {n.slug: n.translated_name for n in self._names.values() if n.translated_name}

    def get(self, label: str) -> AttributeName | None:
        return self._names.get(label)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, label: object) -> bool:
        return label in self._names

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributeNameAccumulator):
            return NotImplemented
        return self.names == other.names

    def __repr__(self) -> str:
        return f"AttributeNameAccumulator({self.names!r})"

"""Label codec for dependency relations stored as issue labels.

A dependency "12 depends on 7" is stored on item 12 as the label
``depends-on:7``. A secondary, display-only relation uses ``blocked-by:7``.
"""

import structlog

from issuegraph.models import normalize_item_id

logger = structlog.get_logger(__name__)

DEFAULT_DEPENDS_PREFIX = "depends-on:"
DEFAULT_BLOCKED_BY_PREFIX = "blocked-by:"


class DependencyLabelCodec:
    """Encode and decode dependency ids in label names."""

    def __init__(
        self,
        prefix: str = DEFAULT_DEPENDS_PREFIX,
        blocked_by_prefix: str = DEFAULT_BLOCKED_BY_PREFIX,
    ):
        """Initialize the codec.

        Args:
            prefix: Label prefix for the primary depends-on relation
            blocked_by_prefix: Label prefix for the secondary blocked-by relation
        """
        self.prefix = prefix
        self.blocked_by_prefix = blocked_by_prefix

    def encode(self, target: str) -> str:
        """Return the label recording a dependency on ``target``.

        Examples:
            >>> DependencyLabelCodec().encode("7")
            'depends-on:7'
        """
        return f"{self.prefix}{normalize_item_id(target)}"

    def is_dependency_label(self, label: str) -> bool:
        return label.startswith(self.prefix) and len(label) > len(self.prefix)

    def decode(self, labels: list[str] | tuple[str, ...]) -> list[str]:
        """Extract dependency ids from labels, in label order, deduplicated.

        Examples:
            >>> DependencyLabelCodec().decode(["bug", "depends-on:7", "depends-on:#9"])
            ['7', '9']
        """
        return self._decode_prefix(labels, self.prefix)

    def decode_blocked_by(self, labels: list[str] | tuple[str, ...]) -> list[str]:
        """Extract secondary blocked-by ids from labels."""
        return self._decode_prefix(labels, self.blocked_by_prefix)

    def add(self, labels: list[str] | tuple[str, ...], target: str) -> list[str]:
        """Return ``labels`` with the dependency on ``target`` appended, deduplicated."""
        encoded = self.encode(target)
        merged = list(dict.fromkeys(labels))
        if encoded not in merged:
            merged.append(encoded)
        return merged

    def remove(self, labels: list[str] | tuple[str, ...], target: str) -> list[str]:
        """Return ``labels`` without any label encoding a dependency on ``target``."""
        target_id = normalize_item_id(target)
        return [
            label
            for label in dict.fromkeys(labels)
            if not self.is_dependency_label(label)
            or self._label_id(label, self.prefix) != target_id
        ]

    def _decode_prefix(self, labels: list[str] | tuple[str, ...], prefix: str) -> list[str]:
        ids: list[str] = []
        for label in labels:
            if not label.startswith(prefix):
                continue
            item_id = self._label_id(label, prefix)
            if item_id is None:
                logger.debug("malformed_dependency_label", label=label)
                continue
            if item_id not in ids:
                ids.append(item_id)
        return ids

    @staticmethod
    def _label_id(label: str, prefix: str) -> str | None:
        raw = label[len(prefix) :]
        try:
            return normalize_item_id(raw)
        except ValueError:
            return None

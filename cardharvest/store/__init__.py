"""
Persistent state for the harvester.

``checkpoint`` remembers the last fully processed listing page and
``dataset`` accumulates resolved cards grouped by tier.  Both rewrite
their files atomically and assume a single writer.
"""

from .checkpoint import CheckpointStore  # noqa: F401
from .dataset import DatasetStore  # noqa: F401

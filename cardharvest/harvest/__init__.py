"""
Harvest orchestration.

The ``runner`` module exposes :class:`HarvestRunner`, which walks the
listing pages from the saved checkpoint onward, resolves every card
found and files it in the tier-keyed dataset, and :func:`build_runner`,
which wires the default components from a ``HarvestConfig``.
"""

from .runner import HarvestRunner, build_runner  # noqa: F401

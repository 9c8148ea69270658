"""
Detail resolution for individual cards.

``strategies`` holds the selectors and the ordered fallback chain used
for every record field; ``resolver`` renders a card's detail page and
assembles the record.
"""

from .resolver import DetailResolver, build_record  # noqa: F401

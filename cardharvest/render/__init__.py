"""
Page rendering layer.

``base`` defines the renderer contract every other component consumes:
open a page, navigate and wait for readiness, extract named fields,
close.  ``crawl4ai_renderer`` implements it on top of crawl4ai's
headless browser.  The crawl4ai module is imported lazily by callers so
that the rest of the package (and its tests) never start a browser.
"""

from .base import FieldSelector, ReadyCondition, RenderedPage, Renderer  # noqa: F401

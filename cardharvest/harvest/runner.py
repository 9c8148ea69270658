"""
Harvest runner.

Drives a checkpointed sweep over the card listing.  For each page from
``checkpoint + 1`` to ``total_pages`` it discovers the page's card ids,
resolves each card in order, appends every resolved card to the
dataset and only then advances the checkpoint to that page.

Processing is strictly sequential: one renderer session, one page at a
time, one card at a time, in listing order.  A card that cannot be
resolved is logged and skipped.  A listing page that cannot be loaded
aborts the run with the checkpoint left at the last completed page, so
the next run picks up exactly there.  Storage errors propagate.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from ..config import HarvestConfig
from ..detail.resolver import DetailResolver
from ..errors import PageLoadError
from ..listing import ListingWalker
from ..render.base import Renderer
from ..schema import STATUS_ABORTED, STATUS_COMPLETED, HarvestReport
from ..store import CheckpointStore, DatasetStore

logger = logging.getLogger(__name__)


class HarvestRunner:
    def __init__(
        self,
        renderer: Renderer,
        walker: ListingWalker,
        resolver: DetailResolver,
        dataset: DatasetStore,
        checkpoint: CheckpointStore,
        total_pages: int,
        *,
        run_log: Optional[Union[str, Path]] = None,
    ) -> None:
        self.renderer = renderer
        self.walker = walker
        self.resolver = resolver
        self.dataset = dataset
        self.checkpoint = checkpoint
        self.total_pages = total_pages
        self.run_log = Path(run_log) if run_log else None

    async def _process_page(self, page: int, card_ids: List[str], report: HarvestReport) -> None:
        for card_id in card_ids:
            record = await self.resolver.resolve(self.renderer, card_id)
            if record is None:
                logger.warning("Page %d: card %s could not be resolved, skipping", page, card_id)
                report.items_skipped += 1
                continue
            self.dataset.append(record)
            report.records_appended += 1

    async def run(self) -> HarvestReport:
        """Sweep the remaining pages and report how far the run got."""
        report = HarvestReport(total_pages=self.total_pages)
        async with self.renderer:
            last_page = self.checkpoint.read()
            report.start_page = last_page + 1
            report.last_completed_page = last_page
            if report.start_page > self.total_pages:
                logger.info("Checkpoint is at page %d of %d; nothing to do",
                            last_page, self.total_pages)
            else:
                logger.info("Starting harvest at page %d of %d",
                            report.start_page, self.total_pages)

            for page in range(report.start_page, self.total_pages + 1):
                try:
                    card_ids = await self.walker.discover_ids(self.renderer, page)
                except PageLoadError as exc:
                    logger.error("Aborting harvest: %s", exc)
                    report.status = STATUS_ABORTED
                    report.error = str(exc)
                    break
                logger.info("Page %d: %d cards", page, len(card_ids))
                await self._process_page(page, card_ids, report)
                self.checkpoint.write(page)
                logger.info("Page %d complete; checkpoint saved", page)
                report.last_completed_page = page
                report.pages_processed += 1
            else:
                report.status = STATUS_COMPLETED

        report.finished_at = datetime.utcnow().isoformat()
        logger.info(
            "Harvest %s: %d pages, %d cards stored, %d skipped, checkpoint at %d",
            report.status,
            report.pages_processed,
            report.records_appended,
            report.items_skipped,
            report.last_completed_page,
        )
        self._write_run_log(report)
        return report

    def _write_run_log(self, report: HarvestReport) -> None:
        if self.run_log is None:
            return
        try:
            self.run_log.parent.mkdir(parents=True, exist_ok=True)
            with open(self.run_log, "a", encoding="utf-8") as f:
                f.write(json.dumps(report.to_dict()) + "\n")
        except OSError as exc:
            logger.warning("Could not append to run log %s: %s", self.run_log, exc)


def build_renderer(config: HarvestConfig) -> Renderer:
    # Imported here so that nothing else pulls in the browser stack.
    from ..render.crawl4ai_renderer import Crawl4aiRenderer

    return Crawl4aiRenderer(
        headless=config.headless,
        user_agent=config.user_agent,
        settle_delay=config.settle_delay,
    )


def build_resolver(config: HarvestConfig) -> DetailResolver:
    return DetailResolver(
        config.detail_url_template,
        ready_timeout=config.ready_timeout,
        navigation_timeout=config.navigation_timeout,
    )


def build_runner(config: HarvestConfig, renderer: Optional[Renderer] = None) -> HarvestRunner:
    """Wire the default components for ``config``."""
    walker = ListingWalker(
        config.listing_url_template,
        ready_timeout=config.ready_timeout,
        navigation_timeout=config.navigation_timeout,
    )
    return HarvestRunner(
        renderer or build_renderer(config),
        walker,
        build_resolver(config),
        DatasetStore(config.dataset_path, mode=config.dataset_mode),
        CheckpointStore(config.checkpoint_path),
        config.total_pages,
        run_log=config.run_log_path,
    )

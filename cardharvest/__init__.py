"""
cardharvest: a resumable harvester for a paginated card catalog.

The package walks the catalog's listing pages, resolves every card's
detail page into a structured record and files the records in a JSON
dataset keyed by tier.  Progress is checkpointed per listing page so an
interrupted run resumes where it stopped.

The flow of a run is:

1. **render** – a single browser session (crawl4ai) shared by the run.
   Each page visit opens and closes its own page on that session.
2. **listing** – load listing page *n* and collect the card ids it
   links to, in order, without repeats.
3. **detail** – load each card's detail page and resolve name, media
   URL, description, tier and creators through ordered fallback
   chains, substituting sentinel values for anything missing.
4. **store** – append each record to the tier-keyed dataset, then
   advance the checkpoint once the whole page is stored.
5. **harvest** – the runner tying the steps together; **cli** is the
   command line entry point.
"""

__version__ = "0.1.0"

"""
News ingestion pipeline.

A scheduling tick flows through these modules in order:

- planner.py: which providers to call this tick, and for which category
- rate_budget.py: per-provider hourly/daily/monthly call budgets
- transformer.py: provider records to ``ArticleCandidate``
- categorizer.py: keyword scoring into a ``Category``
- dedup.py: exact and fuzzy duplicate detection against recent articles
- scheduler.py: the periodic trigger and per-task execution
- stats.py: daily counters and recorded errors

Import the submodules directly; this package keeps no re-exports so the
provider adapters can depend on ``base`` and ``errors`` without pulling in
the scheduler.
"""

"""Core alpha generation logic: models, indicators, consolidation, alpha models.

This package contains pure business logic with no I/O dependencies
(no files, database or network access). Price observations are pushed in
by a driver, universe changes are delivered by the caller, and alphas are
returned to whoever drives the scheduler tick.
"""

"""Truth or Dare backend jobs.

Recurring background work for the Truth or Dare content catalog:
- Cron-driven job scheduler with on-demand runs
- AI content generation across category, age group and language
- Retention cleanup of soft-deleted rows with storage reclamation
"""

__version__ = "1.0.0"

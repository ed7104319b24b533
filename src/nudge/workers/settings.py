"""arq worker settings module.

Import path for arq CLI: arq nudge.workers.settings.WorkerSettings
"""

from __future__ import annotations

from nudge.workers.reminders import WorkerSettings

__all__ = ["WorkerSettings"]

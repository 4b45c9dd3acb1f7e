"""
Background workers for non-blocking comparisons.

Provides QThread-based workers for:
- Comparing in-memory texts
- Comparing text files
- Debounced re-comparison while the inputs are being edited

All workers use Qt signals for thread-safe communication
with the UI thread.
"""

from devcompare.workers.base_worker import (
    BaseWorker,
    WorkerSignals,
    WorkerState,
    WorkerThread,
)
from devcompare.workers.compare_worker import (
    TextCompareWorker,
    FileCompareWorker,
    CompareScheduler,
    CompareFailed,
)

__all__ = [
    # Base
    'BaseWorker',
    'WorkerSignals',
    'WorkerState',
    'WorkerThread',
    # Compare
    'TextCompareWorker',
    'FileCompareWorker',
    'CompareScheduler',
    'CompareFailed',
]

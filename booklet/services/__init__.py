# booklet/services/__init__.py
from .lifecycle import BookLocation, LifecycleEngine
from .backup import BackupManager
from .statistics import ReadingStatistics, ReadingStats

__all__ = [
    'BookLocation',
    'LifecycleEngine',
    'BackupManager',
    'ReadingStatistics',
    'ReadingStats'
]

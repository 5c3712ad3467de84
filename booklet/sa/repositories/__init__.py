# booklet/sa/repositories/__init__.py
# Entry repositories live in .reading and are written to only by
# booklet.services.lifecycle.LifecycleEngine
from .book import BookRepository
from .reading import ALL_TIME, parse_year

__all__ = ['BookRepository', 'ALL_TIME', 'parse_year']

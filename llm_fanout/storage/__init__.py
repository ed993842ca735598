"""Storage components for fan-out run results"""

from .result_store import ResultStore

__all__ = ['ResultStore']

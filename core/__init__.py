from .classifier import classify
from .merge_engine import MergeEngine, resolve

__all__ = [
    'classify',
    'MergeEngine',
    'resolve',
]

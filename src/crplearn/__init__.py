from .histogram import TableHistogram
from .restaurant import Restaurant

__all__ = ['Restaurant', 'TableHistogram']

"""
Execution context shared by the pipeline stages
"""

import concurrent.futures
import os
from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar('T')
R = TypeVar('R')

DEFAULT_CHUNK_SIZE = 250_000


class GnocchiContext:
    """Execution settings passed explicitly into each stage.

    The caller owns the lifecycle; nothing here is global.

    Args:
        chunk_size: Rows read from the genotype store per chunk
        n_jobs: Worker threads used for per-chunk work (1 = sequential,
                -1 = one per CPU)
        verbose: Print progress lines
    """

    def __init__(self,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 n_jobs: int = 1,
                 verbose: bool = True):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if n_jobs == 0 or n_jobs < -1:
            raise ValueError(f"n_jobs must be -1 or a positive integer, got {n_jobs}")
        self.chunk_size = int(chunk_size)
        self.n_jobs = int(n_jobs)
        self.verbose = bool(verbose)

    @property
    def max_workers(self) -> int:
        if self.n_jobs == -1:
            return os.cpu_count() or 1
        return self.n_jobs

    def log(self, message: str):
        if self.verbose:
            print(message)

    def map(self, func: Callable[[T], R], items: Iterable[T]) -> List[R]:
        """Apply func to every item, preserving order."""
        if self.max_workers <= 1:
            # Sequential path consumes items lazily
            return [func(item) for item in items]
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(func, items))

    def __repr__(self) -> str:
        return (f"GnocchiContext(chunk_size={self.chunk_size}, n_jobs={self.n_jobs}, "
                f"verbose={self.verbose})")


def resolve_context(context: Optional[GnocchiContext], verbose: Optional[bool] = None) -> GnocchiContext:
    """Return context, or a default one when None was given."""
    if context is None:
        return GnocchiContext(verbose=True if verbose is None else verbose)
    return context

"""
Identity-token memoization.

Provides a reusable abstraction for caching values that must be recomputed
only when one of their input objects is replaced (e.g., when the store
commits a new FormState). Inputs are compared by identity, never by value:
immutable snapshots make identity a precise change signal and keep the check
O(number of inputs).
"""

from typing import Any, Callable, Generic, Optional, Sequence, Tuple, TypeVar

T = TypeVar('T')


class SingleValueTokenCache(Generic[T]):
    """
    Cache for one derived value keyed by the identity of its inputs.

    Example:
        cache = SingleValueTokenCache(lambda: (store.read_all(),))
        values = cache.get_or_compute(lambda: build_values(store.read_all()))

        # Recomputed only after the store commits a new state
    """

    def __init__(self, token_provider: Callable[[], Sequence[Any]]):
        """
        Initialize single-value token cache.

        Args:
            token_provider: Function returning the current input objects
        """
        self._token_provider = token_provider
        self._cached_value: Optional[T] = None
        self._cached_token: Optional[Tuple[Any, ...]] = None
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _same_token(a: Optional[Tuple[Any, ...]], b: Tuple[Any, ...]) -> bool:
        if a is None or len(a) != len(b):
            return False
        return all(x is y for x, y in zip(a, b))

    def get_or_compute(self, compute_fn: Callable[[], T]) -> T:
        """
        Get cached value or compute and cache it.

        Args:
            compute_fn: Function to compute value if cache miss

        Returns:
            Cached or computed value
        """
        current_token = tuple(self._token_provider())

        if self._same_token(self._cached_token, current_token):
            self._hits += 1
            return self._cached_value  # type: ignore[return-value]

        self._misses += 1
        value = compute_fn()
        self._cached_value = value
        self._cached_token = current_token
        return value

    def invalidate(self) -> None:
        """Manually invalidate the cache."""
        self._cached_value = None
        self._cached_token = None

    @property
    def stats(self) -> Tuple[int, int]:
        """(hits, misses) since creation."""
        return self._hits, self._misses

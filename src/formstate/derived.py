"""
Derived views over FormState.

Pure projections (values, validation, is_dirty, is_valid) plus DerivedViews,
which memoizes each projection against the identity of its inputs so repeated
reads between commits cost nothing.
"""
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping

from formstate.field_store import FieldStore
from formstate.state_model import FormState
from formstate.token_cache import SingleValueTokenCache
from formstate.validation import Validation, calculate_is_valid, deep_equal

IsValidFn = Callable[[Validation], bool]

logger = logging.getLogger(__name__)


def create_values(field_names: Iterable[str], state: FormState) -> Dict[str, Any]:
    """Field name -> value, in field order."""
    return {name: state[name].value for name in field_names}


def create_validation(field_names: Iterable[str], state: FormState) -> Dict[str, Any]:
    """Field name -> validation result, omitting fields not validated yet."""
    validation = {}
    for name in field_names:
        v = state[name].validation
        if v is not None:
            validation[name] = v
    return validation


def is_dirty(initial_values: Mapping[str, Any], values: Mapping[str, Any]) -> bool:
    """True when current values differ structurally from the baseline."""
    return not deep_equal(initial_values, values)


def is_valid(validation: Validation, calculate: IsValidFn = calculate_is_valid) -> bool:
    """Aggregate validity; a failing validity function counts as not valid."""
    try:
        return bool(calculate(validation))
    except Exception:
        logger.error("Error caught while calling the calculate_is_valid function", exc_info=True)
        return False


class DerivedViews:
    """Memoized projections for one store.

    Each view is recomputed only when an input object is replaced:
    - values / validation  <- FormState
    - is_dirty             <- initial values baseline, values view
    - is_valid             <- validation view, aggregate validity function
    """

    def __init__(
        self,
        store: FieldStore,
        initial_values_provider: Callable[[], Mapping[str, Any]],
        is_valid_fn_provider: Callable[[], IsValidFn],
    ):
        self._store = store
        self._initial_values_provider = initial_values_provider
        self._is_valid_fn_provider = is_valid_fn_provider

        self._values_cache = SingleValueTokenCache(lambda: (store.read_all(),))
        self._validation_cache = SingleValueTokenCache(lambda: (store.read_all(),))
        self._dirty_cache = SingleValueTokenCache(lambda: (self._initial_values_provider(), self.values()))
        self._valid_cache = SingleValueTokenCache(lambda: (self.validation(), self._is_valid_fn_provider()))

    def values(self) -> Mapping[str, Any]:
        return self._values_cache.get_or_compute(
            lambda: MappingProxyType(create_values(self._store.field_names, self._store.read_all()))
        )

    def validation(self) -> Mapping[str, Any]:
        return self._validation_cache.get_or_compute(
            lambda: MappingProxyType(create_validation(self._store.field_names, self._store.read_all()))
        )

    def is_dirty(self) -> bool:
        return self._dirty_cache.get_or_compute(
            lambda: is_dirty(self._initial_values_provider(), self.values())
        )

    def is_valid(self) -> bool:
        return self._valid_cache.get_or_compute(
            lambda: is_valid(self.validation(), self._is_valid_fn_provider())
        )

    def invalidate(self) -> None:
        """Drop every memoized view."""
        for cache in (self._values_cache, self._validation_cache, self._dirty_cache, self._valid_cache):
            cache.invalidate()

"""
FieldRegistry: side table of validation callbacks keyed by field name.

Lives outside FormState on purpose: bindings re-register whenever their
callback identity changes, and that churn must never produce a store commit.
Reads during validation always see the latest registration.
"""
from dataclasses import dataclass
import logging
from typing import Callable, Dict, Iterable, List, Optional

from formstate.validation import HookFn, ValidateFn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldRegistration:
    """Callbacks a field binding supplies. Every slot is optional."""
    validate: Optional[ValidateFn] = None
    before_validate: Optional[HookFn] = None
    after_validate: Optional[HookFn] = None

    @property
    def has_validator(self) -> bool:
        return callable(self.validate)


EMPTY_REGISTRATION = FieldRegistration()


class FieldRegistry:
    """Registry of FieldRegistration objects for a fixed set of field names.

    Lifecycle ownership:
    - FieldBinding: registers on creation and whenever its callbacks change
    - ValidationOrchestrator: reads only, at the start of each run

    Thread safety: Not thread-safe (all operations expected on the event loop thread).
    """

    def __init__(self, field_names: Iterable[str]):
        self._field_names = frozenset(field_names)
        self._registrations: Dict[str, FieldRegistration] = {}

        # Registration callbacks receive (field_name, registration)
        self._on_register_callbacks: List[Callable[[str, FieldRegistration], None]] = []

    def add_register_callback(self, callback: Callable[[str, FieldRegistration], None]) -> None:
        """Subscribe to registration events."""
        if callback not in self._on_register_callbacks:
            self._on_register_callbacks.append(callback)

    def _fire_register_callbacks(self, name: str, registration: FieldRegistration) -> None:
        for callback in self._on_register_callbacks:
            try:
                callback(name, registration)
            except Exception as e:
                logger.warning(f"Error in register callback: {e}")

    def register(
        self,
        name: str,
        registration: Optional[FieldRegistration] = None,
        *,
        validate: Optional[ValidateFn] = None,
        before_validate: Optional[HookFn] = None,
        after_validate: Optional[HookFn] = None,
    ) -> None:
        """Overwrite the registration for ``name``.

        Accepts either a ready FieldRegistration or the individual callbacks.
        Unknown names are still stored (so a later lookup is consistent) but a
        warning is logged, since a binding is pointing at a field that doesn't exist.
        """
        if registration is None:
            registration = FieldRegistration(
                validate=validate,
                before_validate=before_validate,
                after_validate=after_validate,
            )
        if name not in self._field_names:
            logger.warning(f"register({name!r}) called for a field that wasn't defined in initial values")

        self._registrations[name] = registration
        logger.debug(f"Registered field {name!r} (validator={registration.has_validator})")
        self._fire_register_callbacks(name, registration)

    def unregister(self, name: str) -> None:
        """Drop the registration for ``name`` (no-op when absent).

        Validation runs already in flight keep the registration they captured.
        """
        if self._registrations.pop(name, None) is not None:
            logger.debug(f"Unregistered field {name!r}")

    def get(self, name: str) -> FieldRegistration:
        """Get the latest registration, or an empty one."""
        return self._registrations.get(name, EMPTY_REGISTRATION)

    def names_with_validator(self) -> List[str]:
        """Snapshot of known field names that currently have a validator."""
        return [
            name for name, reg in self._registrations.items()
            if reg.has_validator and name in self._field_names
        ]

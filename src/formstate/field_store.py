"""
FieldStore: single-writer state container with per-field subscriber channels.

Holds the canonical FormState. Every write goes through mutate(); after the new
state is committed, subscribers are notified only for the fields whose entry
changed by reference. Subscribers of other fields never fire.

Thread safety: Not thread-safe (all operations expected on the event loop thread).
"""
import logging
from typing import Callable, Dict, FrozenSet, List, Tuple

from formstate.state_model import EMPTY_ENTRY, FieldEntry, FormState
from formstate.validation import ValidationResult, deep_equal

logger = logging.getLogger(__name__)

FieldCallback = Callable[[FieldEntry], None]
# Receives (changed field names, whether is_submitting/submit_count changed)
FormCallback = Callable[[FrozenSet[str], bool], None]
Updater = Callable[[FormState], FormState]


class FieldStore:
    """
    Canonical store of truth for one form.

    Core Attributes:
    - _state: Current FormState (replaced wholesale on each commit)
    - _field_names: Fixed at construction, never grows or shrinks
    - _field_callbacks: field name -> subscribers for that field only
    - _form_callbacks: coarse subscribers that see every commit
    - _token: Incremented once per committed mutation
    """

    def __init__(self, state: FormState):
        self._state = state
        self._field_names: Tuple[str, ...] = tuple(state.fields)
        self._field_callbacks: Dict[str, List[FieldCallback]] = {name: [] for name in self._field_names}
        self._form_callbacks: List[FormCallback] = []
        self._token: int = 0

    @property
    def field_names(self) -> Tuple[str, ...]:
        return self._field_names

    def has_field(self, name: str) -> bool:
        return name in self._field_callbacks

    def get_token(self) -> int:
        """Get current commit token (changes on every committed mutation)."""
        return self._token

    # ========== READS ==========

    def read(self, name: str) -> FieldEntry:
        """Read one field's entry. O(1), touches no other field."""
        entry = self._state.fields.get(name)
        if entry is None:
            logger.warning(f"read({name!r}) called for a field that wasn't defined in initial values")
            return EMPTY_ENTRY
        return entry

    def read_all(self) -> FormState:
        """Return the canonical snapshot (immutable, safe to hold)."""
        return self._state

    # ========== WRITES ==========

    def mutate(self, updater: Updater) -> FormState:
        """Apply ``updater`` to the current state and commit the result.

        The only write path. The updater receives the committed state and must
        return a FormState over the same field set. Returning the same object
        is a no-op: nothing is committed and nobody is notified.

        Returns:
            The committed state.
        """
        previous = self._state
        candidate = updater(previous)
        if candidate is previous:
            return previous
        if not isinstance(candidate, FormState):
            raise TypeError(f"mutate() updater must return a FormState, got {type(candidate).__name__}")
        if candidate.fields.keys() != previous.fields.keys():
            raise ValueError("mutate() updater may not add or remove fields")

        changed = frozenset(
            name for name in self._field_names
            if candidate.fields[name] is not previous.fields[name]
        )
        flags_changed = (
            candidate.is_submitting != previous.is_submitting
            or candidate.submit_count != previous.submit_count
        )

        self._state = candidate
        self._token += 1

        if changed or flags_changed:
            logger.debug(f"Committed mutation token={self._token} changed={sorted(changed)} flags_changed={flags_changed}")
            self._notify(changed, flags_changed)
        return candidate

    def set_field_value(self, name: str, value) -> FormState:
        """Write one field's value."""
        if not self.has_field(name):
            logger.warning(f"set_field_value({name!r}) called for a field that wasn't defined in initial values")
            return self._state
        return self.mutate(lambda s: s.with_field(name, s[name].with_value(value)))

    def set_field_validation(self, name: str, validation: ValidationResult) -> FormState:
        """Write one field's validation, skipped when deep-equal to the stored one."""
        if not self.has_field(name):
            logger.warning(f"set_field_validation({name!r}) called for a field that wasn't defined in initial values")
            return self._state

        def _update(s: FormState) -> FormState:
            entry = s[name]
            if deep_equal(entry.validation, validation):
                return s
            return s.with_field(name, entry.with_validation(validation))

        return self.mutate(_update)

    # ========== SUBSCRIPTIONS ==========

    def subscribe(self, name: str, callback: FieldCallback) -> Callable[[], None]:
        """Subscribe to one field's entry changes.

        Returns:
            Callable that removes the subscription.
        """
        callbacks = self._field_callbacks.get(name)
        if callbacks is None:
            logger.warning(f"subscribe({name!r}) called for a field that wasn't defined in initial values")
            return lambda: None
        if callback not in callbacks:
            callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return _unsubscribe

    def subscribe_all(self, callback: FormCallback) -> Callable[[], None]:
        """Subscribe to every committed mutation (coarse, form-level readers)."""
        if callback not in self._form_callbacks:
            self._form_callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._form_callbacks:
                self._form_callbacks.remove(callback)

        return _unsubscribe

    def _notify(self, changed: FrozenSet[str], flags_changed: bool) -> None:
        """Fire field subscribers for changed fields, then form subscribers (best-effort).

        A subscriber may write to the store. The nested commit notifies the
        fields it touches, so this fan-out stops delivering any entry that has
        since been replaced; subscribers never end on a stale entry.
        """
        state = self._state
        for name in changed:
            entry = state.fields[name]
            for callback in list(self._field_callbacks[name]):
                if self._state.fields[name] is not entry:
                    break
                try:
                    callback(entry)
                except Exception as e:
                    logger.warning(f"Error in field subscriber for {name!r}: {e}")

        for callback in list(self._form_callbacks):
            try:
                callback(changed, flags_changed)
            except Exception as e:
                logger.warning(f"Error in form subscriber: {e}")

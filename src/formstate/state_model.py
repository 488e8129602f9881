"""
Immutable state records for the form store.

This module provides the typed data structures held by FieldStore.

Design Philosophy: Correct by Construction
- Immutable entries and states (frozen dataclasses)
- Every mutation produces a new FormState; untouched FieldEntry objects are
  carried over by reference, so identity comparison tells exactly which
  fields changed
- validation=None means "no validation run has completed for this field"
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, Mapping, Optional


@dataclass(frozen=True)
class FieldEntry:
    """State cell for a single field.

    ``value`` is always present. ``validation`` stays None until a validation
    run for the field completes.
    """
    value: Any
    validation: Any = None

    def with_value(self, value: Any) -> 'FieldEntry':
        if value is self.value:
            return self
        return replace(self, value=value)

    def with_validation(self, validation: Any) -> 'FieldEntry':
        return replace(self, validation=validation)


# Returned for unknown field names so bindings degrade to an empty slice
EMPTY_ENTRY = FieldEntry(value=None)


@dataclass(frozen=True)
class FormState:
    """Canonical snapshot of the whole form.

    Analogous to a single commit: holds every field entry plus the submit
    flags. The field set is fixed when the first state is built.
    """
    fields: Mapping[str, FieldEntry]
    is_submitting: bool = False
    submit_count: int = 0

    @classmethod
    def create(cls, initial_values: Mapping[str, Any]) -> 'FormState':
        """Build the first state from an initial values mapping."""
        return cls(fields={name: FieldEntry(value=value) for name, value in initial_values.items()})

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __getitem__(self, name: str) -> FieldEntry:
        return self.fields[name]

    def with_fields(self, changes: Mapping[str, FieldEntry]) -> 'FormState':
        """Return a new state with the given entries swapped in.

        Entries not named in ``changes`` are shared with this state by reference.
        Returns ``self`` when nothing would change.
        """
        if not changes:
            return self
        merged: Dict[str, FieldEntry] = dict(self.fields)
        merged.update(changes)
        return replace(self, fields=merged)

    def with_field(self, name: str, entry: FieldEntry) -> 'FormState':
        if self.fields.get(name) is entry:
            return self
        return self.with_fields({name: entry})

    def with_flags(
        self,
        is_submitting: Optional[bool] = None,
        submit_count: Optional[int] = None,
    ) -> 'FormState':
        """Return a new state with updated submit flags (None keeps current)."""
        new_submitting = self.is_submitting if is_submitting is None else is_submitting
        new_count = self.submit_count if submit_count is None else submit_count
        if new_submitting == self.is_submitting and new_count == self.submit_count:
            return self
        return replace(self, is_submitting=new_submitting, submit_count=new_count)


@dataclass(frozen=True)
class ResetState:
    """Optional overrides accepted by ``Form.reset_form``.

    Missing names in ``values`` fall back to the current initial values;
    missing names in ``validation`` are cleared.
    """
    values: Mapping[str, Any] = field(default_factory=dict)
    validation: Mapping[str, Any] = field(default_factory=dict)
    is_submitting: bool = False
    submit_count: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'ResetState':
        """Import from a plain dict (keys: values, validation, is_submitting, submit_count)."""
        if data is None:
            return cls()
        submit_count = data.get('submit_count')
        return cls(
            values=dict(data.get('values') or {}),
            validation=dict(data.get('validation') or {}),
            is_submitting=bool(data.get('is_submitting', False)),
            submit_count=submit_count if isinstance(submit_count, int) else 0,
        )

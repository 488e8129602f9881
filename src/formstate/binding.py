"""
FieldBinding: the per-field contract a view layer consumes.

A binding reads one field's slice, writes its value, reports blur, registers
the field's validation callbacks and subscribes to changes of that field
only. It never looks at other fields, so rendering one input never depends
on the rest of the form.
"""
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from formstate.registry import FieldRegistration
from formstate.state_model import FieldEntry
from formstate.validation import HookFn, ValidateFn

if TYPE_CHECKING:
    from formstate.form import Form


class FieldBinding:
    """View-facing handle for a single field.

    Usage:
        email = form.field('email', validate=check_email)
        email.subscribe(lambda entry: render(entry.value, entry.validation))
        email.set_value('a@b.c')
        email.on_blur()
        email.dispose()
    """

    def __init__(
        self,
        form: 'Form',
        name: str,
        validate: Optional[ValidateFn] = None,
        before_validate: Optional[HookFn] = None,
        after_validate: Optional[HookFn] = None,
    ):
        self._form = form
        self.name = name
        self._registration: Optional[FieldRegistration] = None
        self._unsubscribers: List[Callable[[], None]] = []
        self.register(validate=validate, before_validate=before_validate, after_validate=after_validate)

    # === Slice reads ===

    @property
    def entry(self) -> FieldEntry:
        return self._form.field_state(self.name)

    @property
    def value(self) -> Any:
        return self.entry.value

    @property
    def validation(self) -> Any:
        return self.entry.validation

    # === Writes ===

    def set_value(self, value: Any):
        return self._form.set_field_value(self.name, value)

    def on_blur(self):
        return self._form.set_blur(self.name)

    def register(
        self,
        validate: Optional[ValidateFn] = None,
        before_validate: Optional[HookFn] = None,
        after_validate: Optional[HookFn] = None,
    ) -> None:
        """(Re)register this field's callbacks; the latest registration wins.

        Re-registering identical callbacks is skipped.
        """
        registration = FieldRegistration(
            validate=validate,
            before_validate=before_validate,
            after_validate=after_validate,
        )
        if registration == self._registration:
            return
        self._registration = registration
        self._form.registry.register(self.name, registration)

    # === Subscriptions ===

    def subscribe(self, callback: Callable[[FieldEntry], None]) -> Callable[[], None]:
        """Subscribe to this field's entry changes; returns the unsubscribe callable."""
        unsubscribe = self._form.store.subscribe(self.name, callback)
        self._unsubscribers.append(unsubscribe)
        return unsubscribe

    def dispose(self) -> None:
        """Drop every subscription made through this binding and its registration.

        A registration made later by another binding for the same field is left alone.
        """
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        if self._registration is not None and self._form.registry.get(self.name) is self._registration:
            self._form.registry.unregister(self.name)
        self._registration = None

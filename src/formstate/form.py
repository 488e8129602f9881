"""
Form: submit/reset lifecycle over FieldStore, FieldRegistry and ValidationOrchestrator.

This class is the entry point collaborators use. It owns:
- the FieldStore (canonical FormState)
- the initial values baseline (replaced only by reset_form)
- the FieldRegistry side table
- the ValidationOrchestrator
- the ConfigCell holding the latest mount-time configuration
- background tasks spawned by change/blur validation and handle_submit

Lifecycle:
    Idle --submit_form()--> Submitting --(always)--> Idle

Nothing raised by validators, calculate_is_valid or on_submit escapes submit_form(),
validate_field() or validate_all_fields(): failures are logged and the form
stays usable. is_submitting is released on every exit path.
"""
import asyncio
import inspect
import logging
from types import MappingProxyType
from typing import Any, Callable, Coroutine, Dict, Mapping, Optional, Set, Union

from formstate.binding import FieldBinding
from formstate.config import ConfigCell, FormConfig
from formstate.derived import DerivedViews, is_valid
from formstate.field_store import FieldStore
from formstate.orchestrator import ValidationOrchestrator
from formstate.registry import FieldRegistry
from formstate.state_model import FieldEntry, FormState, ResetState
from formstate.validation import Validation, ValidationResult, calculate_is_valid, deep_equal

logger = logging.getLogger(__name__)


def _suppress_event(event: Any) -> None:
    """Call prevent_default/stop_propagation on event objects that support them."""
    if event is None:
        return
    for names in (('prevent_default', 'preventDefault'), ('stop_propagation', 'stopPropagation')):
        for method_name in names:
            method = getattr(event, method_name, None)
            if callable(method):
                method()
                break


class Form:
    """
    Per-field reactive form state.

    Example:
        form = create_form({'email': '', 'name': ''}, on_submit=save)
        email = form.field('email', validate=lambda v: '@' in v)
        email.set_value('me@example.com')   # schedules validation of 'email' only
        await form.submit_form()
    """

    def __init__(self, initial_values: Mapping[str, Any], config: Optional[FormConfig] = None):
        """
        Args:
            initial_values: Defines the fixed field set and the first baseline
            config: Mount-time configuration (see FormConfig)
        """
        self._initial_values: Mapping[str, Any] = MappingProxyType(dict(initial_values))
        self._store = FieldStore(FormState.create(initial_values))
        self._registry = FieldRegistry(self._store.field_names)
        self._orchestrator = ValidationOrchestrator(self._store, self._registry)
        self._config = ConfigCell(config)
        self._views = DerivedViews(self._store, lambda: self._initial_values, self._is_valid_fn)
        self._tasks: Set[asyncio.Task] = set()

    # ========== COLLABORATORS ==========

    @property
    def store(self) -> FieldStore:
        return self._store

    @property
    def registry(self) -> FieldRegistry:
        return self._registry

    @property
    def orchestrator(self) -> ValidationOrchestrator:
        return self._orchestrator

    @property
    def config(self) -> FormConfig:
        return self._config.get()

    def configure(self, **changes: Any) -> FormConfig:
        """Replace configuration options; the newest values win everywhere."""
        return self._config.update(**changes)

    async def mount(self) -> None:
        """Provider-mount hook: validates every field when validate_on_mount is set."""
        if self._config.get().validate_on_mount:
            await self.validate_all_fields()

    def _is_valid_fn(self) -> Callable[[Validation], bool]:
        return self._config.get().calculate_is_valid or calculate_is_valid

    # ========== READS ==========

    @property
    def field_names(self):
        return self._store.field_names

    def has_field(self, name: str) -> bool:
        return self._store.has_field(name)

    @property
    def initial_values(self) -> Mapping[str, Any]:
        """Current dirty-check baseline (read-only)."""
        return self._initial_values

    def field_state(self, name: str) -> FieldEntry:
        return self._store.read(name)

    def values(self) -> Mapping[str, Any]:
        return self._views.values()

    def validation(self) -> Mapping[str, Any]:
        return self._views.validation()

    def is_dirty(self) -> bool:
        return self._views.is_dirty()

    def is_valid(self) -> bool:
        return self._views.is_valid()

    @property
    def is_submitting(self) -> bool:
        return self._store.read_all().is_submitting

    @property
    def submit_count(self) -> int:
        return self._store.read_all().submit_count

    def field(self, name: str, **callbacks: Any) -> FieldBinding:
        """Create a FieldBinding for ``name`` (see formstate.binding)."""
        return FieldBinding(self, name, **callbacks)

    # ========== BACKGROUND TASKS ==========

    def _spawn(self, coro: Coroutine, label: str) -> Optional[asyncio.Task]:
        """Schedule ``coro`` on the running loop and keep a strong reference to it."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning(f"{label}: no running event loop, skipped")
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def settle(self) -> None:
        """Wait until every spawned validation/submit task (including ones they spawn) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ========== VALUE WRITES ==========

    def _will_validate(self, should_validate: Optional[bool]) -> bool:
        if should_validate is None:
            return self._config.get().validate_on_change
        return should_validate

    def update_field_value(
        self,
        name: str,
        set_value: Callable[[Any], Any],
        should_validate: Optional[bool] = None,
    ) -> Optional[asyncio.Task]:
        """Write ``set_value(previous)`` into the field atomically.

        Validation (when enabled) runs against the committed value.

        Returns:
            The scheduled validation task, if any.
        """
        if not self._store.has_field(name):
            logger.warning(f"update_field_value({name!r}) called for a field that wasn't defined in initial values")
            return None

        committed = self._store.mutate(
            lambda s: s.with_field(name, s[name].with_value(set_value(s[name].value)))
        )
        if self._will_validate(should_validate):
            return self._spawn(
                self._orchestrator.validate_field(name, committed[name].value),
                f"validate_field({name!r})",
            )
        return None

    def set_field_value(self, name: str, value: Any, should_validate: Optional[bool] = None) -> Optional[asyncio.Task]:
        """Write a plain value into one field (see update_field_value)."""
        return self.update_field_value(name, lambda _: value, should_validate)

    def set_values(self, values: Mapping[str, Any], should_validate: Optional[bool] = None) -> Optional[asyncio.Task]:
        """Write several field values in one mutation, then validate the whole form.

        Unknown names are logged and skipped.
        """
        known = {}
        for name, value in values.items():
            if self._store.has_field(name):
                known[name] = value
            else:
                logger.warning(f"set_values: {name!r} wasn't defined in initial values")
        if not known:
            return None

        self._store.mutate(
            lambda s: s.with_fields({name: s[name].with_value(value) for name, value in known.items()})
        )
        if self._will_validate(should_validate):
            return self._spawn(self._orchestrator.validate_all_fields(), "validate_all_fields()")
        return None

    def set_field_validation(self, name: str, validation: ValidationResult) -> None:
        """Write one field's validation (no-op when deep-equal to the stored result)."""
        self._store.set_field_validation(name, validation)

    def set_blur(self, name: str) -> Optional[asyncio.Task]:
        """Field lost focus: validate it when validate_on_blur is enabled."""
        if not self._config.get().validate_on_blur:
            return None
        if not self._store.has_field(name):
            logger.warning(f"set_blur({name!r}) called for a field that wasn't defined in initial values")
            return None
        return self._spawn(self._orchestrator.validate_field(name), f"validate_field({name!r})")

    # ========== VALIDATION ==========

    async def run_field_validate_fn(self, name: str, value: Any) -> ValidationResult:
        return await self._orchestrator.run_field_validate_fn(name, value)

    async def validate_field(self, name: str, *args: Any) -> ValidationResult:
        """Validate one field (optionally against an explicit value)."""
        return await self._orchestrator.validate_field(name, *args)

    async def validate_all_fields(self) -> Optional[Dict[str, ValidationResult]]:
        return await self._orchestrator.validate_all_fields()

    # ========== SUBMIT / RESET ==========

    async def submit_form(self) -> Any:
        """Mark submitting, validate everything, call on_submit if valid, release.

        submit_count grows by one on every call, valid or not.

        Returns:
            Whatever on_submit returned (awaited), or None when it wasn't called
            or failed.
        """
        self._store.mutate(lambda s: s.with_flags(is_submitting=True, submit_count=s.submit_count + 1))
        logger.debug(f"Submit #{self.submit_count} started")
        try:
            validation = await self._orchestrator.validate_all_fields()
            if validation is None:
                logger.warning("Submit aborted: whole-form validation failed")
                return None
            if not is_valid(validation, self._is_valid_fn()):
                logger.debug("Submit skipped: form is invalid")
                return None

            # Read the config after validation so the newest on_submit is used
            on_submit = self._config.get().on_submit
            try:
                result = on_submit(dict(self._views.values()))
                if inspect.isawaitable(result):
                    result = await result
                return result
            except Exception:
                logger.error("Error caught while calling the on_submit callback", exc_info=True)
                return None
        finally:
            self._store.mutate(lambda s: s.with_flags(is_submitting=False))
            logger.debug("Submit finished")

    def reset_form(self, new_state: Union[ResetState, Mapping[str, Any], None] = None) -> None:
        """Replace every field and re-baseline the initial values.

        For each field: value from ``new_state.values`` else the current
        baseline; validation from ``new_state.validation`` else cleared.
        submit_count/is_submitting take the supplied values or 0/False.
        In-flight validation runs are discarded.
        """
        if not isinstance(new_state, ResetState):
            new_state = ResetState.from_dict(new_state)

        for name in list(new_state.values) + list(new_state.validation):
            if not self._store.has_field(name):
                logger.warning(f"reset_form: {name!r} wasn't defined in initial values")

        baseline = self._initial_values
        new_values: Dict[str, Any] = {}
        new_validation: Dict[str, Any] = {}
        for name in self._store.field_names:
            new_values[name] = new_state.values[name] if name in new_state.values else baseline[name]
            new_validation[name] = new_state.validation.get(name)

        self._initial_values = MappingProxyType(new_values)
        self._orchestrator.discard_pending_runs()

        def _reset(s: FormState) -> FormState:
            changes = {}
            for name in self._store.field_names:
                entry = s[name]
                value, validation = new_values[name], new_validation[name]
                # Equal entries keep their identity so their subscribers stay quiet
                if deep_equal(entry.value, value) and deep_equal(entry.validation, validation):
                    continue
                changes[name] = FieldEntry(value=value, validation=validation)
            return s.with_fields(changes).with_flags(
                is_submitting=new_state.is_submitting,
                submit_count=new_state.submit_count,
            )

        self._store.mutate(_reset)
        logger.debug("Form reset")

    def handle_submit(self, event: Any = None) -> Optional[asyncio.Task]:
        """Event handler: suppress the event's default action, then submit in the background."""
        _suppress_event(event)
        return self._spawn(self.submit_form(), "submit_form()")

    def handle_reset(self, event: Any = None) -> None:
        """Event handler: suppress the event's default action, then reset to the baseline."""
        _suppress_event(event)
        self.reset_form()


def create_form(initial_values: Mapping[str, Any], **config: Any) -> Form:
    """Create a Form from initial values plus FormConfig options."""
    return Form(initial_values, FormConfig(**config))

"""
Validation orchestration for FieldStore.

Per-field runs are tagged with a run token. The orchestrator remembers the
latest token per field; when a run finishes, its result is committed only if
its token is still the latest one. Older runs keep executing but their
results are dropped (there is no way to interrupt a validator).

Whole-form validation is a single batch: every registered validator runs
concurrently, and all results are committed together in one mutation.
"""
import asyncio
import inspect
import logging
from typing import Any, Dict, Optional, Tuple

from formstate.field_store import FieldStore
from formstate.registry import FieldRegistration, FieldRegistry
from formstate.state_model import FormState
from formstate.validation import ValidationResult, deep_equal

logger = logging.getLogger(__name__)

_MISSING = object()


class RunToken:
    """Identity-only marker for one validation run."""
    __slots__ = ('field_name',)

    def __init__(self, field_name: str):
        self.field_name = field_name

    def __repr__(self) -> str:
        return f"<RunToken {self.field_name!r} at {id(self):#x}>"


async def _call_validator(validate, value: Any) -> ValidationResult:
    """Call a validator or hook that may be sync or async."""
    result = validate(value)
    if inspect.isawaitable(result):
        result = await result
    return result


class ValidationOrchestrator:
    """Runs field validators against a FieldStore using a FieldRegistry."""

    def __init__(self, store: FieldStore, registry: FieldRegistry):
        self._store = store
        self._registry = registry
        self._current_runs: Dict[str, RunToken] = {}

    def discard_pending_runs(self) -> None:
        """Forget every current run token so results of in-flight runs are dropped."""
        if self._current_runs:
            logger.debug(f"Discarding in-flight validation runs for {sorted(self._current_runs)}")
        self._current_runs.clear()

    async def _run(self, name: str, value: Any, registration: FieldRegistration) -> Tuple[bool, ValidationResult]:
        """before_validate -> validate -> after_validate (each may be sync or async).

        Returns:
            (succeeded, result). A failure in any of the three callbacks is
            logged and reported as (False, None).
        """
        try:
            if callable(registration.before_validate):
                await _call_validator(registration.before_validate, value)
            result = await _call_validator(registration.validate, value)
            if callable(registration.after_validate):
                await _call_validator(registration.after_validate, value)
            return True, result
        except Exception:
            logger.error(f"Error caught while calling validate function of field: {name!r}", exc_info=True)
            return False, None

    async def run_field_validate_fn(self, name: str, value: Any) -> ValidationResult:
        """Run the registered callbacks once, without run tokens or store writes.

        Returns:
            The validator's result, or None when no validator is registered or
            a callback failed.
        """
        registration = self._registry.get(name)
        if not registration.has_validator:
            return None
        _, result = await self._run(name, value, registration)
        return result

    async def validate_field(self, name: str, value: Any = _MISSING) -> ValidationResult:
        """Validate one field and commit the result if this run is still current.

        Args:
            name: Field to validate
            value: Value to validate (defaults to the field's stored value)

        Returns:
            The committed result. None when the field has no validator, the
            run failed, or a newer run superseded this one.
        """
        if not self._store.has_field(name):
            logger.warning(f"validate_field({name!r}) called for a field that wasn't defined in initial values")
            return None

        # Capture the registration now; a re-registration mid-run doesn't affect this run
        registration = self._registry.get(name)
        if not registration.has_validator:
            return None

        if value is _MISSING:
            value = self._store.read(name).value

        token = RunToken(name)
        self._current_runs[name] = token

        succeeded, result = await self._run(name, value, registration)

        if self._current_runs.get(name) is not token:
            logger.debug(f"Discarding stale validation result for {name!r}")
            return None
        if not succeeded:
            return None

        self._store.set_field_validation(name, result)
        return result

    async def validate_all_fields(self) -> Optional[Dict[str, ValidationResult]]:
        """Validate every field with a registered validator as one batch.

        Runs validators concurrently against the current values, waits for all
        of them, then commits every changed result in a single mutation. If
        any validator fails, nothing is committed.

        Returns:
            Mapping of field name -> result for the batch, or None on failure.
        """
        names = self._registry.names_with_validator()
        registrations = {name: self._registry.get(name) for name in names}
        state = self._store.read_all()

        outcomes = await asyncio.gather(
            *(_call_validator(registrations[name].validate, state[name].value) for name in names),
            return_exceptions=True,
        )

        failed = False
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                failed = True
                logger.error(
                    f"Error caught while calling validate function of field: {name!r}",
                    exc_info=(type(outcome), outcome, outcome.__traceback__),
                )
        if failed:
            logger.warning("validate_all_fields: batch not committed because a validator failed")
            return None

        validation: Dict[str, ValidationResult] = dict(zip(names, outcomes))

        def _merge(s: FormState) -> FormState:
            return s.with_fields({
                name: s[name].with_validation(result)
                for name, result in validation.items()
                if not deep_equal(s[name].validation, result)
            })

        self._store.mutate(_merge)
        return validation

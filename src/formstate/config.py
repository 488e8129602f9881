"""
Form configuration and the latest-configuration cell.

FormConfig holds the policy flags and callbacks supplied when a form is
mounted. ConfigCell is a single settable slot: the form reads it at the point
of use (including inside asynchronous continuations), so a submit that is
already validating still calls the newest on_submit.
"""

from dataclasses import dataclass, replace
import logging
from typing import Any, Callable, Mapping, Optional

from formstate.validation import Validation

logger = logging.getLogger(__name__)

OnSubmit = Callable[[Mapping[str, Any]], Any]


def _noop_submit(values: Mapping[str, Any]) -> None:
    return None


@dataclass(frozen=True)
class FormConfig:
    """Mount-time configuration.

    Attributes:
        on_submit: Called with a values snapshot when a submit is valid.
                   May return an awaitable, which is awaited.
        validate_on_change: Validate a field after its value is written
        validate_on_blur: Validate a field when it loses focus
        validate_on_mount: Validate all fields when the form mounts
        calculate_is_valid: Aggregate validity override (None = default rule)
    """
    on_submit: OnSubmit = _noop_submit
    validate_on_change: bool = True
    validate_on_blur: bool = True
    validate_on_mount: bool = False
    calculate_is_valid: Optional[Callable[[Validation], bool]] = None


class ConfigCell:
    """Single mutable slot holding the latest FormConfig."""

    def __init__(self, config: Optional[FormConfig] = None):
        self._config = config if config is not None else FormConfig()

    def get(self) -> FormConfig:
        return self._config

    def update(self, **changes: Any) -> FormConfig:
        """Replace selected attributes, keeping the rest.

        Args:
            **changes: FormConfig attribute names and their new values

        Returns:
            The stored config.
        """
        unknown = set(changes) - set(FormConfig.__dataclass_fields__)
        if unknown:
            raise TypeError(f"Unknown form config option(s): {sorted(unknown)}")
        self._config = replace(self._config, **changes)
        logger.debug(f"Form config updated: {sorted(changes)}")
        return self._config

"""
Per-field reactive form state.

This package keeps the state of a multi-field form so that a view layer can
update one field's display without re-rendering or re-validating the rest.

Key Features:
- One immutable entry per field; untouched entries keep their identity
- Per-field subscriber channels (changing field F never notifies field G)
- Asynchronous validation with stale-result discarding (run tokens)
- Whole-form validation as a single atomic batch
- Submit lifecycle that always releases is_submitting
- Memoized derived views (values, validation, is_dirty, is_valid)

Quick Start:
    >>> import asyncio
    >>> from formstate import create_form
    >>>
    >>> async def main():
    ...     form = create_form({'name': ''}, on_submit=print)
    ...     name = form.field('name', validate=lambda v: len(v) > 0)
    ...     name.set_value('Ada')
    ...     await form.settle()
    ...     await form.submit_form()
    >>>
    >>> asyncio.run(main())
    {'name': 'Ada'}

Modules:
    - state_model: FieldEntry / FormState / ResetState records
    - field_store: Single-writer store with per-field subscriptions
    - registry: Side table of validation callbacks
    - orchestrator: Per-field and whole-form validation
    - derived: Memoized projections of the state
    - config: Mount-time configuration and the latest-config cell
    - form: Submit/reset lifecycle and the Form entry point
    - binding: Per-field handle consumed by a view layer
"""

# State records
from formstate.state_model import EMPTY_ENTRY, FieldEntry, FormState, ResetState

# Store
from formstate.field_store import FieldStore

# Registry
from formstate.registry import FieldRegistration, FieldRegistry

# Validation
from formstate.validation import calculate_is_valid, contains_failure, deep_equal
from formstate.orchestrator import RunToken, ValidationOrchestrator

# Derived views
from formstate.derived import DerivedViews, create_validation, create_values, is_dirty, is_valid
from formstate.token_cache import SingleValueTokenCache

# Configuration
from formstate.config import ConfigCell, FormConfig

# Form
from formstate.binding import FieldBinding
from formstate.form import Form, create_form

__all__ = [
    # State records
    'EMPTY_ENTRY',
    'FieldEntry',
    'FormState',
    'ResetState',
    # Store
    'FieldStore',
    # Registry
    'FieldRegistration',
    'FieldRegistry',
    # Validation
    'calculate_is_valid',
    'contains_failure',
    'deep_equal',
    'RunToken',
    'ValidationOrchestrator',
    # Derived views
    'DerivedViews',
    'create_values',
    'create_validation',
    'is_dirty',
    'is_valid',
    'SingleValueTokenCache',
    # Configuration
    'ConfigCell',
    'FormConfig',
    # Form
    'FieldBinding',
    'Form',
    'create_form',
]

__version__ = '1.0.0'
__description__ = 'Per-field reactive form state with asynchronous validation'

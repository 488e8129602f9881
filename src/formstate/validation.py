"""
Validation result helpers.

A validation result is either a leaf (bool, message string, None, any scalar)
or a nested mapping/sequence of further results. The literal ``False`` is the
failure sentinel: finding it anywhere in the tree makes the form invalid.
"""
from typing import Any, Callable, Mapping, Sequence, Union

ValidationResult = Union[bool, str, None, Mapping[str, Any], Sequence[Any], Any]
Validation = Mapping[str, ValidationResult]

# Validator signatures: validate may return a result or an awaitable of one
ValidateFn = Callable[[Any], Any]
HookFn = Callable[[Any], None]


def is_failure(value: Any) -> bool:
    """True only for the literal boolean False (0, '' and None are not failures)."""
    return value is False


def contains_failure(result: ValidationResult) -> bool:
    """Recursively search a validation result for the failure sentinel."""
    if isinstance(result, Mapping):
        return any(contains_failure(v) for v in result.values())
    if isinstance(result, (list, tuple)):
        return any(contains_failure(v) for v in result)
    return is_failure(result)


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality that keeps booleans distinct from numbers.

    Plain ``==`` treats ``True == 1`` and ``{'x': False} == {'x': 0}`` as equal,
    which would hide a switch between a failure sentinel and a falsy value.
    """
    if a is b:
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        return False
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    return a == b


def calculate_is_valid(validation: Validation) -> bool:
    """Default aggregate validity: no ``False`` anywhere in the validation tree."""
    return not contains_failure(validation)

"""A small JsonLogic evaluator used to filter watched resources."""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any


class JsonLogicError(ValueError):
    """Raised when a rule is malformed or cannot be evaluated."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, (str, list)):
        return len(value) > 0
    return True


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if _is_number(value):
        return float(value)
    if value is None:
        return 0.0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def _number_result(value: float) -> int | float:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _to_str(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join(_to_str(item) for item in value)
    return str(value)


def _loose_equal(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, bool):
        a = int(a)
    if isinstance(b, bool):
        b = int(b)
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if _is_number(a) and _is_number(b):
        return a == b
    if (_is_number(a) and isinstance(b, str)) or (isinstance(a, str) and _is_number(b)):
        return _to_number(a) == _to_number(b)
    return a == b


def _strict_equal(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_number(a) and _is_number(b):
        return a == b
    return type(a) is type(b) and a == b


def _less(a: Any, b: Any) -> bool:
    if isinstance(a, str) and isinstance(b, str):
        return a < b
    return _to_number(a) < _to_number(b)


def _less_equal(a: Any, b: Any) -> bool:
    if isinstance(a, str) and isinstance(b, str):
        return a <= b
    return _to_number(a) <= _to_number(b)


def _resolve_var(data: Any, path: Any, default: Any = None) -> Any:
    if path is None or path == "":
        return data
    parts = [path] if _is_number(path) else str(path).split(".")
    current = data
    for part in parts:
        if isinstance(current, dict):
            key = part if isinstance(part, str) else str(part)
            if key not in current:
                return default
            current = current[key]
        elif isinstance(current, list):
            try:
                index = int(part)
            except (TypeError, ValueError):
                return default
            if not 0 <= index < len(current):
                return default
            current = current[index]
        else:
            return default
    return default if current is None else current


def _missing(args: list[Any], data: Any) -> list[Any]:
    keys = args[0] if args and isinstance(args[0], list) else args
    return [key for key in keys if _resolve_var(data, key) in (None, "")]


def _compare_chain(compare: Callable[[Any, Any], bool], args: list[Any]) -> bool:
    if len(args) < 2:
        raise JsonLogicError("comparison needs at least two arguments")
    return all(compare(a, b) for a, b in zip(args, args[1:]))


def _minus(args: list[Any]) -> int | float:
    if len(args) == 1:
        return _number_result(-_to_number(args[0]))
    if len(args) < 1:
        raise JsonLogicError("'-' needs an argument")
    return _number_result(_to_number(args[0]) - _to_number(args[1]))


def _divide(args: list[Any]) -> int | float:
    if len(args) < 2:
        raise JsonLogicError("'/' needs two arguments")
    divisor = _to_number(args[1])
    if divisor == 0:
        raise JsonLogicError("division by zero")
    return _number_result(_to_number(args[0]) / divisor)


def _modulo(args: list[Any]) -> int | float:
    if len(args) < 2:
        raise JsonLogicError("'%' needs two arguments")
    divisor = _to_number(args[1])
    if divisor == 0:
        raise JsonLogicError("modulo by zero")
    return _number_result(math.fmod(_to_number(args[0]), divisor))


def _product(args: list[Any]) -> int | float:
    result = 1.0
    for arg in args:
        result *= _to_number(arg)
    return _number_result(result)


def _extreme(pick: Callable[..., float], args: list[Any]) -> int | float | None:
    if not args:
        return None
    return _number_result(pick(_to_number(arg) for arg in args))


def _contains(needle: Any, haystack: Any) -> bool:
    if isinstance(haystack, list):
        return any(_strict_equal(needle, item) for item in haystack)
    if isinstance(haystack, str):
        return _to_str(needle) in haystack
    return False


def _substr(args: list[Any]) -> str:
    if not args:
        raise JsonLogicError("'substr' needs a string")
    text = _to_str(args[0])
    start = int(_to_number(args[1])) if len(args) > 1 else 0
    begin = max(len(text) + start, 0) if start < 0 else start
    if len(args) < 3:
        return text[begin:]
    length = int(_to_number(args[2]))
    if length < 0:
        return text[begin : len(text) + length]
    return text[begin : begin + length]


def _merge(args: list[Any]) -> list[Any]:
    merged: list[Any] = []
    for arg in args:
        if isinstance(arg, list):
            merged.extend(arg)
        else:
            merged.append(arg)
    return merged


_EAGER: dict[str, Callable[[list[Any]], Any]] = {
    "==": lambda a: _loose_equal(*a[:2]) if len(a) >= 2 else False,
    "!=": lambda a: not _loose_equal(*a[:2]) if len(a) >= 2 else True,
    "===": lambda a: _strict_equal(*a[:2]) if len(a) >= 2 else False,
    "!==": lambda a: not _strict_equal(*a[:2]) if len(a) >= 2 else True,
    "!": lambda a: not _truthy(a[0] if a else None),
    "!!": lambda a: _truthy(a[0] if a else None),
    "<": lambda a: _compare_chain(_less, a),
    "<=": lambda a: _compare_chain(_less_equal, a),
    ">": lambda a: _compare_chain(lambda x, y: _less(y, x), a),
    ">=": lambda a: _compare_chain(lambda x, y: _less_equal(y, x), a),
    "+": lambda a: _number_result(sum(_to_number(x) for x in a)),
    "-": _minus,
    "*": _product,
    "/": _divide,
    "%": _modulo,
    "max": lambda a: _extreme(max, a),
    "min": lambda a: _extreme(min, a),
    "in": lambda a: _contains(a[0], a[1]) if len(a) >= 2 else False,
    "cat": lambda a: "".join(_to_str(x) for x in a),
    "substr": _substr,
    "merge": _merge,
    "log": lambda a: a[0] if a else None,
}


def _evaluate_items(args: list[Any], data: Any) -> list[Any]:
    items = _apply(args[0], data) if args else None
    return items if isinstance(items, list) else []


def _apply(logic: Any, data: Any) -> Any:
    if isinstance(logic, list):
        return [_apply(item, data) for item in logic]
    if not isinstance(logic, dict) or len(logic) != 1:
        return logic

    ((operator, raw_args),) = logic.items()
    args = raw_args if isinstance(raw_args, list) else [raw_args]

    if operator in ("if", "?:"):
        for condition, outcome in zip(args[0::2], args[1::2]):
            if _truthy(_apply(condition, data)):
                return _apply(outcome, data)
        return _apply(args[-1], data) if len(args) % 2 == 1 else None
    if operator == "and":
        value: Any = None
        for arg in args:
            value = _apply(arg, data)
            if not _truthy(value):
                return value
        return value
    if operator == "or":
        value = None
        for arg in args:
            value = _apply(arg, data)
            if _truthy(value):
                return value
        return value
    if operator == "map":
        return [_apply(args[1], item) for item in _evaluate_items(args, data)]
    if operator == "filter":
        return [item for item in _evaluate_items(args, data) if _truthy(_apply(args[1], item))]
    if operator == "reduce":
        accumulator = _apply(args[2], data) if len(args) > 2 else None
        for item in _evaluate_items(args, data):
            accumulator = _apply(args[1], {"current": item, "accumulator": accumulator})
        return accumulator
    if operator == "all":
        items = _evaluate_items(args, data)
        return bool(items) and all(_truthy(_apply(args[1], item)) for item in items)
    if operator == "some":
        return any(_truthy(_apply(args[1], item)) for item in _evaluate_items(args, data))
    if operator == "none":
        return not any(_truthy(_apply(args[1], item)) for item in _evaluate_items(args, data))

    values = [_apply(arg, data) for arg in args]
    if operator == "var":
        return _resolve_var(data, values[0] if values else None, values[1] if len(values) > 1 else None)
    if operator == "missing":
        return _missing(values, data)
    if operator == "missing_some":
        if len(values) < 2 or not isinstance(values[1], list):
            raise JsonLogicError("'missing_some' needs a count and a list of keys")
        absent = _missing([values[1]], data)
        found = len(values[1]) - len(absent)
        return [] if found >= _to_number(values[0]) else absent

    handler = _EAGER.get(operator)
    if handler is None:
        raise JsonLogicError(f"unrecognized operation {operator!r}")
    return handler(values)


def apply_logic(logic: Any, data: Any = None) -> Any:
    """Evaluate a JsonLogic rule against ``data`` and return the result."""
    try:
        return _apply(logic, data)
    except JsonLogicError:
        raise
    except (TypeError, IndexError, ValueError, OverflowError) as exc:
        raise JsonLogicError(f"cannot evaluate rule: {exc}") from exc
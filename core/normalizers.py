"""
Value Normalizers
================

Rule authors write durations, operators and technique lists the short way
("1h", "gt", "T1078.004"); the deployment schema wants them spelled out. The
converters below are pure and never raise: input they do not recognise passes
through unchanged (durations) or falls back to a fixed default (operators).

Note on the operator default: any unrecognised trigger operator becomes
"GreaterThan". This can hide a typo in a rule file, but it is the long-standing
behaviour rule authors rely on, so it is kept as is and reported through
diagnostics by the mapper instead.
"""

from typing import Any, List, Tuple

from config import RAW_DURATION_PATTERN, OPERATOR_ALIASES, DEFAULT_TRIGGER_OPERATOR

_CANONICAL_OPERATORS = {'LessThan', 'Equal', 'NotEqual'}


def is_raw_duration(value: Any) -> bool:
    """True when `value` looks like "<N>H", "<N>M" or "<N>D"."""
    return isinstance(value, str) and bool(RAW_DURATION_PATTERN.match(value.strip()))


def normalize_duration(value: Any) -> Any:
    """
    Convert a raw duration to ISO-8601.

    Examples:
        normalize_duration("5H")   # -> "PT5H"
        normalize_duration("30m")  # -> "PT30M"
        normalize_duration("3D")   # -> "P3D"
        normalize_duration("2W")   # -> "2W" (unchanged)
        normalize_duration("PT1H") # -> "PT1H" (already ISO)
    """
    if not isinstance(value, str):
        return value

    match = RAW_DURATION_PATTERN.match(value.strip())
    if not match:
        return value

    amount, unit = match.group(1), match.group(2).upper()
    if unit == 'D':
        return f"P{amount}D"
    return f"PT{amount}{unit}"


def normalize_operator(value: Any) -> str:
    """
    Canonicalise a trigger operator.

    "lt", "eq" and "ne" expand to LessThan, Equal and NotEqual; the canonical
    names pass through; everything else, typos included, is GreaterThan.
    """
    if isinstance(value, str):
        operator = value.strip()
        if operator in OPERATOR_ALIASES:
            return OPERATOR_ALIASES[operator]
        if operator in _CANONICAL_OPERATORS:
            return operator
    return DEFAULT_TRIGGER_OPERATOR


def is_known_operator(value: Any) -> bool:
    """True when normalize_operator would not have to fall back to its default."""
    if not isinstance(value, str):
        return False
    operator = value.strip()
    return (operator in OPERATOR_ALIASES or operator in _CANONICAL_OPERATORS
            or operator in ('gt', DEFAULT_TRIGGER_OPERATOR))


def split_techniques(values: Any) -> Tuple[List[str], List[str]]:
    """
    Split MITRE ATT&CK ids into techniques and sub-techniques.

    Sub-technique ids ("T1078.004") contribute their parent ("T1078") to the
    technique list and themselves to the sub-technique list. Both lists are
    de-duplicated in first-seen order.

    Args:
        values: List of ids, or a comma-separated string of ids

    Returns:
        Tuple[List[str], List[str]]: (techniques, sub_techniques)

    Example:
        split_techniques(["T1234", "T1234.001", "T1234.001"])
        # -> (["T1234"], ["T1234.001"])
    """
    if values is None:
        return [], []
    if isinstance(values, str):
        values = values.split(',')
    elif not isinstance(values, (list, tuple)):
        values = [values]

    techniques: List[str] = []
    sub_techniques: List[str] = []

    for raw in values:
        if raw is None:
            continue
        item = "".join(str(raw).split())
        if not item:
            continue

        if '.' in item:
            parent = item.split('.', 1)[0]
            if parent and parent not in techniques:
                techniques.append(parent)
            if item not in sub_techniques:
                sub_techniques.append(item)
        elif item not in techniques:
            techniques.append(item)

    return techniques, sub_techniques


def format_function_parameters(params: Any) -> str:
    """
    Build a KQL function parameter signature.

    Each entry is either a {Name, Type, Default} mapping or a ready-made string.
    "table:" types keep only their schema part, and string defaults are quoted.

    Example:
        format_function_parameters([
            {"Name": "starttime", "Type": "datetime", "Default": "datetime(null)"},
            {"Name": "srcipaddr", "Type": "string", "Default": "*"},
            {"Name": "T", "Type": "table:(*)"},
        ])
        # -> "starttime:datetime=datetime(null), srcipaddr:string='*', T:(*)"
    """
    if params is None:
        return ""
    if isinstance(params, str):
        return params.strip()
    if not isinstance(params, (list, tuple)):
        params = [params]

    parts = []
    for param in params:
        if param is None:
            continue
        if isinstance(param, str):
            if param.strip():
                parts.append(param.strip())
            continue
        if not isinstance(param, dict):
            parts.append(str(param).strip())
            continue

        name = str(param.get('Name') or '').strip()
        param_type = str(param.get('Type') or '').strip()
        if param_type.startswith('table:'):
            rendered_type = param_type.split(':', 1)[1].strip()
        else:
            rendered_type = param_type

        part = f"{name}:{rendered_type}"
        default = param.get('Default')
        if default is not None:
            part += f"={_render_default(default, param_type)}"
        parts.append(part)

    return ", ".join(parts)


def _render_default(default: Any, param_type: str) -> str:
    if isinstance(default, bool):
        text = str(default).lower()
    else:
        text = str(default)
    if param_type == 'string':
        return f"'{text}'"
    return text

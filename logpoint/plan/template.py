"""
Message template and parameter resolution.

Turns a callable's parameters plus an optional message template into the
ordered parameter rules and the normalized template of a log plan.

Templates use `{expression}` placeholders:
    {}      the next parameter (a counter starting at 0, advanced only by {})
    {1}     the parameter at index 1 (ASCII digits, an optional sign is accepted)
    {other} an invalid expression, logged as diagnostic text

Nothing in here raises for bad template content; problems end up as readable
text in the log message instead.
"""
import re
from typing import List, Optional, Sequence, Tuple

from logpoint.models import ParameterInfo
from logpoint.plan.rules import LiveParameter, ParameterRule, StaticParameter

PLACEHOLDER = "{}"

_EXPRESSION = re.compile(r"\{(?P<expression>[^}]*)\}")
_NUMERIC = re.compile(r"[+-]?\d+", re.ASCII)


def resolve(
    name: str,
    parameters: Sequence[ParameterInfo],
    message: str,
    error_index: Optional[int] = None,
) -> Tuple[Tuple[ParameterRule, ...], str]:
    """
    Resolve the parameter rules and normalized template for one callable.

    Args:
        name: Callable name, used for the generated message in auto mode
        parameters: All declared parameters, including a trailing error parameter
        message: User template; empty selects auto mode
        error_index: Index of the trailing error parameter, if one was detected

    Returns:
        Tuple of (ordered rules, normalized template)
    """
    if not message:
        rules = auto_rules(parameters)
        placeholders = len(rules)
        if error_index is not None and any(
            isinstance(rule, LiveParameter) and rule.index == error_index for rule in rules
        ):
            placeholders -= 1
        return rules, camel_to_spaces(name) + (" " + PLACEHOLDER) * placeholders
    return explicit_rules(parameters, message), strip_placeholder_bodies(message)


def auto_rules(parameters: Sequence[ParameterInfo]) -> Tuple[ParameterRule, ...]:
    """One live rule per parameter not marked DontLog, in declaration order."""
    return tuple(_live(parameter) for parameter in parameters if not parameter.dont_log)


def explicit_rules(parameters: Sequence[ParameterInfo], message: str) -> Tuple[ParameterRule, ...]:
    """
    One rule per placeholder of `message`, in scan order.

    The default-index counter lives in this call only, so concurrent builds
    never share it.
    """
    rules: List[ParameterRule] = []
    default_index = 0
    for match in _EXPRESSION.finditer(message):
        expression = match.group("expression")
        if not expression:
            index = default_index
            default_index += 1
        elif _NUMERIC.fullmatch(expression):
            index = int(expression)
        else:
            rules.append(StaticParameter(text=f"invalid log parameter expression: {expression}"))
            continue

        if index < 0 or index >= len(parameters):
            rules.append(StaticParameter(text=f"invalid log parameter index: {index}"))
        else:
            rules.append(_live(parameters[index]))
    return tuple(rules)


def strip_placeholder_bodies(message: str) -> str:
    """Replace every `{expression}` with `{}`, keeping all other text."""
    return _EXPRESSION.sub(PLACEHOLDER, message)


def camel_to_spaces(name: str) -> str:
    """
    Split a camel-case name into lower-case words.

    Each upper-case character becomes a space followed by its lower-case form;
    everything else is kept as is, e.g. "fetchUserAccount" -> "fetch user account".
    """
    out = []
    for char in name:
        if char.isupper():
            out.append(" ")
            out.append(char.lower())
        else:
            out.append(char)
    return "".join(out)


def _live(parameter: ParameterInfo) -> LiveParameter:
    return LiveParameter(index=parameter.index, name=parameter.name, annotation=parameter.annotation)

"""
Environment-variable expansion and build-variable macro replacement.

Both use the ``$NAME`` / ``${NAME}`` syntax. References that cannot be
resolved are left untouched.
"""

import re
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Mapping, MutableMapping, Optional, Union

_MACRO = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

Resolver = Union[Mapping[str, str], Callable[[str], Optional[str]]]


def replace_macro(value: Optional[str], resolver: Optional[Resolver]) -> Optional[str]:
    """
    Replace ``$NAME`` and ``${NAME}`` references in a string.

    Args:
        value: String possibly containing references
        resolver: Mapping or callable returning the value for a name, or None

    Returns:
        The string with every resolvable reference replaced
    """
    if value is None or resolver is None or "$" not in value:
        return value

    lookup = resolver.get if isinstance(resolver, Mapping) else resolver

    def _sub(match: "re.Match[str]") -> str:
        name = match.group(1) or match.group(2)
        resolved = lookup(name)
        return match.group(0) if resolved is None else str(resolved)

    return _MACRO.sub(_sub, value)


def expand(value: Optional[str], env: Optional[Mapping[str, str]]) -> Optional[str]:
    """Expand environment variables in ``value`` using ``env``."""
    return replace_macro(value, env)


def resolve(value: Optional[str],
            env: Optional[Mapping[str, str]],
            build_variables: Optional[Resolver] = None) -> str:
    """Expand environment variables, then build variables. None becomes ''."""
    return replace_macro(expand(value, env), build_variables) or ""


@contextmanager
def scoped_variables(env: MutableMapping[str, str], values: Dict[str, str]) -> Iterator[MutableMapping[str, str]]:
    """
    Expose ``values`` in ``env`` for the duration of the block only.

    Previous values of the same names are restored on exit.
    """
    previous = {name: env[name] for name in values if name in env}
    env.update(values)
    try:
        yield env
    finally:
        for name in values:
            if name in previous:
                env[name] = previous[name]
            else:
                env.pop(name, None)

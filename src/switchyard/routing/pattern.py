"""Route pattern compilation.

A pattern is a path template with ``{name}`` or ``{name:type}``
placeholders::

    "about/{name:string}"  ->  ^about/(?P<name>[^/]+)$
    "user/{id:int}"        ->  ^user/(?P<id>\\d+)$

Everything outside a placeholder is used as regular-expression content
verbatim, so metacharacters in the literal portion are significant
(``"v1.0"`` also matches ``"v1x0"``). Captured values are always strings:
a type only picks the character class.
"""

import re
from dataclasses import dataclass

from switchyard.errors import PatternError

# Character class for each recognised placeholder type
CONVERTERS: dict[str, str] = {
    "string": r"[^/]+",
    "int": r"\d+",
}

DEFAULT_TYPE = "string"

_PLACEHOLDER_BODY = re.compile(r"(?P<name>\w+)(?::(?P<type>\w+))?")


@dataclass(frozen=True, slots=True)
class ParamSpec:
    """A named, typed capture in a pattern."""

    name: str
    type: str = DEFAULT_TYPE


@dataclass(frozen=True, slots=True)
class Matcher:
    """Compiled form of a route pattern.

    ``params`` lists the captures in the order they appear in ``source``.
    """

    source: str
    regex: re.Pattern[str]
    params: tuple[ParamSpec, ...]

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.params)

    def match(self, uri: str) -> dict[str, str] | None:
        """Match *uri* against the whole pattern.

        Returns the captured parameters (name -> string) on success,
        ``None`` otherwise.
        """
        m = self.regex.fullmatch(uri)
        if m is None:
            return None
        return {p.name: m.group(p.name) for p in self.params}


def _split(source: str) -> list[tuple[str, str | None]]:
    """Split *source* into (literal, placeholder-body) pieces.

    Each entry is a literal run followed by the body of the placeholder
    that ends it, or ``None`` for the trailing literal.
    """
    pieces: list[tuple[str, str | None]] = []
    literal: list[str] = []
    i = 0
    while i < len(source):
        ch = source[i]
        if ch == "}":
            raise PatternError(source, f"unbalanced '}}' at position {i}")
        if ch == "{":
            end = source.find("}", i + 1)
            nested = source.find("{", i + 1)
            if end == -1 or (nested != -1 and nested < end):
                raise PatternError(source, f"unbalanced '{{' at position {i}")
            pieces.append(("".join(literal), source[i + 1 : end]))
            literal = []
            i = end + 1
            continue
        literal.append(ch)
        i += 1
    pieces.append(("".join(literal), None))
    return pieces


def compile_pattern(source: str) -> Matcher:
    """Compile a route pattern into a :class:`Matcher`.

    Raises :class:`PatternError` for unbalanced braces, placeholders that
    are not ``name`` or ``name:type``, duplicated parameter names, and
    literal content that is not a valid regular expression.

    Unknown types fall back to ``string``.
    """
    parts: list[str] = []
    params: list[ParamSpec] = []
    seen: set[str] = set()

    for literal, body in _split(source):
        parts.append(literal)
        if body is None:
            continue
        m = _PLACEHOLDER_BODY.fullmatch(body)
        if m is None:
            raise PatternError(source, f"malformed placeholder '{{{body}}}'")
        name = m.group("name")
        if name in seen:
            raise PatternError(source, f"duplicate parameter name {name!r}")
        seen.add(name)
        param_type = m.group("type")
        if param_type not in CONVERTERS:
            param_type = DEFAULT_TYPE
        params.append(ParamSpec(name, param_type))
        parts.append(f"(?P<{name}>{CONVERTERS[param_type]})")

    try:
        regex = re.compile("".join(parts))
    except re.error as exc:
        raise PatternError(source, f"not a valid expression ({exc})") from exc

    return Matcher(source=source, regex=regex, params=tuple(params))

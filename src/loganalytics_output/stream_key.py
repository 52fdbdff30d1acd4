"""
LogicalStreamKey templates.

The stream key (the API's ``Log-Type``) is either a fixed name or a
template with ``%{field}`` references resolved against each record.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

FIELD_REF = re.compile(r"%\{([^}]*)\}")
KEY_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
LITERAL_PATTERN = re.compile(r"^[A-Za-z0-9_]*$")
MAX_KEY_LENGTH = 100


def _field_name(ref: str) -> str:
    name = ref.strip()
    if name.startswith("[") and name.endswith("]"):
        name = name[1:-1].strip()
    return name


def _render(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class StreamKeyTemplate:
    """Parsed stream-key template.

    Example:
        StreamKeyTemplate.parse("ApacheAccessLog").resolve(rec)   # fixed
        StreamKeyTemplate.parse("app_%{service}").resolve(rec)    # templated
    """

    template: str
    fields: tuple[str, ...] = field(default=())

    @classmethod
    def parse(cls, template: str) -> "StreamKeyTemplate":
        if not template:
            raise ValueError("log type must not be empty")

        refs = FIELD_REF.findall(template)
        if not refs:
            if len(template) > MAX_KEY_LENGTH:
                raise ValueError(
                    f"log type '{template}' exceeds {MAX_KEY_LENGTH} characters"
                )
            if not KEY_PATTERN.match(template):
                raise ValueError(
                    f"log type '{template}' must only contain alpha numeric and _"
                )
            return cls(template=template)

        names = tuple(_field_name(r) for r in refs)
        if any(not n for n in names):
            raise ValueError(f"log type '{template}' contains an empty field reference")

        literal = FIELD_REF.sub("", template)
        if not LITERAL_PATTERN.match(literal):
            raise ValueError(
                f"log type '{template}' must only contain alpha numeric and _ "
                "outside of %{field} references"
            )
        return cls(template=template, fields=names)

    @property
    def is_fixed(self) -> bool:
        return not self.fields

    def resolve(self, record: Mapping[str, Any]) -> str:
        if self.is_fixed:
            return self.template

        def _sub(m: re.Match) -> str:
            name = _field_name(m.group(1))
            if name not in record:
                return m.group(0)
            return _render(record[name])

        return FIELD_REF.sub(_sub, self.template)

    def __str__(self) -> str:
        return self.template

# File: zenogen/templates.py
"""
Zeno Generator - Template Engine
=================================
A small Jinja2 wrapper used by concrete generators to turn schema data into
source text.  The engine itself never renders anything.

Built-in helpers are available both as filters and as globals::

    {{ entity.tableName | pascal_case }}Form
    {{ when(column.nullable, "?", "") }}

Helpers: ``camel_case``, ``pascal_case``, ``kebab_case``, ``snake_case``,
``pluralise``, ``singularise``, ``json``, ``eq``, ``includes``, ``when``.

Partials registered with :meth:`TemplateEngine.register_partial` can be
pulled in with ``{% include "name" %}``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateError, Undefined

from zenogen.errors import GenerationError
from zenogen.utils import (
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_plural,
    to_singular,
    to_snake_case,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zenogen.templates")

TemplateHelper = Callable[..., Any]


# ---------------------------------------------------------------------------
# Built-in helpers
# ---------------------------------------------------------------------------


def _string_helper(fn: Callable[[str], str]) -> TemplateHelper:
    def helper(value: Any) -> str:
        return fn(value) if isinstance(value, str) else ""

    helper.__name__ = fn.__name__
    return helper


def _json_helper(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def _eq_helper(a: Any, b: Any) -> bool:
    return type(a) is type(b) and a == b


def _includes_helper(items: Any, item: Any) -> bool:
    if not isinstance(items, (list, tuple)):
        return False
    return item in items


def _when_helper(condition: Any, truthy: Any, falsy: Any = "") -> Any:
    return truthy if condition else falsy


_BUILTIN_HELPERS: Dict[str, TemplateHelper] = {
    "camel_case": _string_helper(to_camel_case),
    "pascal_case": _string_helper(to_pascal_case),
    "kebab_case": _string_helper(to_kebab_case),
    "snake_case": _string_helper(to_snake_case),
    "pluralise": _string_helper(to_plural),
    "singularise": _string_helper(to_singular),
    "json": _json_helper,
    "eq": _eq_helper,
    "includes": _includes_helper,
    "when": _when_helper,
}


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TemplateEngine:
    """
    ``render(template, data) -> str`` on top of a private Jinja2 environment.

    With ``strict=True`` a reference to a missing variable raises instead of
    rendering as an empty string.
    """

    def __init__(self, strict: bool = False) -> None:
        self._partials: Dict[str, str] = {}
        self._env: Environment = Environment(
            loader=DictLoader(self._partials),
            autoescape=False,
            undefined=StrictUndefined if strict else Undefined,
            keep_trailing_newline=True,
        )
        for name, fn in _BUILTIN_HELPERS.items():
            self.register_helper(name, fn)

    def register_helper(self, name: str, fn: TemplateHelper) -> None:
        self._env.filters[name] = fn
        self._env.globals[name] = fn

    def register_partial(self, name: str, template: str) -> None:
        self._partials[name] = template
        if self._env.cache is not None:
            self._env.cache.clear()

    @property
    def helpers(self) -> List[str]:
        return sorted(k for k in self._env.globals if k in self._env.filters)

    def render(self, template: str, data: Optional[Any] = None) -> str:
        """
        Render *template* with *data*.

        A mapping is exposed as top-level variables; any other value is
        available as ``this``.

        Raises:
            GenerationError: on syntax errors or (in strict mode) undefined
                variables.
        """
        if isinstance(data, Mapping):
            context: Dict[str, Any] = dict(data)
        else:
            context = {"this": data}
        try:
            return self._env.from_string(template).render(context)
        except TemplateError as exc:
            raise GenerationError(
                f"Template rendering failed: {exc}",
                "TemplateEngine",
                context={"template": template[:200]},
            ) from exc


def create_template_engine(strict: bool = False) -> TemplateEngine:
    return TemplateEngine(strict=strict)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TemplateHelper",
    "TemplateEngine",
    "create_template_engine",
]

"""Template rendering for cached prompts.

Catalog prompts are Handlebars templates. Content is compiled with pybars
and executed against caller-supplied variables, without HTML escaping.
Custom helpers come from a HelperRegistry and are called Handlebars style:

    register_helper("uppercase", str.upper)
    "Hello {{uppercase name}}!"
    "{{#if vip}}VIP {{/if}}{{name}}"     # built-in block helpers

Registered helpers receive the template arguments only (no ``this``) and
hash arguments as keyword arguments.

Rendering never raises: without variables the content is returned as-is,
and any compile or execution failure falls back to the raw content.
"""
import logging
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional

from pybars import Compiler, strlist

logger = logging.getLogger(__name__)

Helper = Callable[..., Any]

_compiler = Compiler()


@lru_cache(maxsize=256)
def _compile(content: str) -> Callable[..., Any]:
    return _compiler.compile(content)


def _unescaped(value: Any) -> Any:
    """Wrap strings as strlist so pybars emits them without HTML escaping."""
    if isinstance(value, strlist):
        return value
    if isinstance(value, str):
        return strlist([value]) if value else value
    if isinstance(value, Mapping):
        return {key: _unescaped(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_unescaped(item) for item in value]
    return value


def _plain(value: Any) -> Any:
    """Undo _unescaped before values reach user helpers."""
    if isinstance(value, strlist):
        return "".join(value)
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def _bind_helper(fn: Helper) -> Callable[..., Any]:
    def helper(this, *args, **kwargs):
        result = fn(
            *[_plain(arg) for arg in args],
            **{key: _plain(item) for key, item in kwargs.items()},
        )
        return _unescaped(result) if isinstance(result, str) else result

    return helper


class HelperRegistry:
    """Named callables available to every template rendered against it.

    Registration is additive: there is no unregister. The version counter
    lets renderers notice new helpers and rebind them.
    """

    def __init__(self):
        self._helpers: Dict[str, Helper] = {}
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def __contains__(self, name: object) -> bool:
        return name in self._helpers

    def __len__(self) -> int:
        return len(self._helpers)

    def register(self, name: str, fn: Helper) -> None:
        """Register (or replace) a helper.

        Args:
            name: Helper name as used in templates. Must be an identifier.
            fn: Callable invoked with the template arguments.

        Raises:
            TypeError: If name is not a string or fn is not callable.
            ValueError: If name is not a valid identifier.
        """
        if not isinstance(name, str):
            raise TypeError(f"Helper name must be a string, got {type(name).__name__}")
        if not name.isidentifier():
            raise ValueError(f"Helper name must be a valid identifier: {name!r}")
        if not callable(fn):
            raise TypeError(f"Helper '{name}' must be callable")

        self._helpers[name] = fn
        self._version += 1
        logger.debug(f"Registered template helper '{name}'")

    def snapshot(self) -> Dict[str, Helper]:
        """Copy of the current helpers."""
        return dict(self._helpers)


# Process-wide registry shared by every client that is not given its own
default_helpers = HelperRegistry()


def register_helper(name: str, fn: Helper) -> None:
    """Register a helper on the process-wide registry."""
    default_helpers.register(name, fn)


class TemplateRenderer:
    """Compiles and executes prompt templates with a fallback contract."""

    def __init__(self, helpers: Optional[HelperRegistry] = None):
        """Initialize the renderer.

        Args:
            helpers: Helper registry to render against. Defaults to the
                process-wide default_helpers.
        """
        self._helpers = helpers if helpers is not None else default_helpers
        self._bound: Dict[str, Callable[..., Any]] = {}
        self._bound_version = -1

    @property
    def helpers(self) -> HelperRegistry:
        return self._helpers

    def _bound_helpers(self) -> Dict[str, Callable[..., Any]]:
        if self._bound_version != self._helpers.version:
            self._bound = {
                name: _bind_helper(fn) for name, fn in self._helpers.snapshot().items()
            }
            self._bound_version = self._helpers.version
        return self._bound

    def render(self, content: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Render content with variables.

        Returns:
            content unchanged when variables is None or rendering fails,
            otherwise the rendered text.
        """
        if variables is None:
            return content

        try:
            template = _compile(content)
            output = template(_unescaped(dict(variables)), helpers=self._bound_helpers())
            return "".join(output)
        except Exception as e:
            logger.debug(f"Template render failed, returning raw content: {e}")
            return content

"""Path templates and store naming.

Two independent naming schemes live here:

- ``{name}`` placeholders in a section's path template, filled from the
  section's own fields (``saves/{slot_id}/game.json``)
- a bracketed ``[token]`` at either end of a store name, which turns a
  store into one file per section named ``token_SectionName.ext``

Placeholder fields describe where a file lives, not what it holds, so
they are stripped from every delta before it is written and copied back
from the caller's instance after every load. Each placeholder value
must fill exactly one path segment, so separators and dot segments are
refused.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from delta_settings.constants import STORE_PREFIX_SEPARATOR
from delta_settings.exceptions import (
    EmptyParamError,
    MissingParamError,
    PathResolutionError,
)
from delta_settings.value import Value, clone, is_object, is_scalar, kind_of

_PARAM_RE = re.compile(r"\{([^{}]*)\}")
_STORE_PREFIX_RE = re.compile(
    r"^\[(?P<lead>[^\[\]]+)\](?P<rest>.*)$"
    r"|^(?P<stem>.*)\[(?P<trail>[^\[\]]+)\]$"
)

# A placeholder value fills exactly one path segment
_SEPARATORS = ("/", "\\", "\0")
_DOT_SEGMENTS = frozenset({"", ".", ".."})


def extract_params(template: str) -> list[str]:
    """Return the ``{name}`` placeholders of ``template`` in order.

    Unterminated braces and empty ``{}`` yield nothing. A name used
    twice is reported once.

    Example:
        >>> extract_params("saves/{slot_id}/{profile}.json")
        ['slot_id', 'profile']

    """
    params: list[str] = []
    for match in _PARAM_RE.finditer(template):
        name = match.group(1)
        if name and name not in params:
            params.append(name)
    return params


def _is_empty_param(value: Value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_params(
    params: list[str], fields: Value, target: str | None = None
) -> None:
    """Check that every placeholder field is present and non-empty.

    Args:
        params: Placeholder names
        fields: Serialized instance (an Object)
        target: Section key or template, for error messages

    Raises:
        MissingParamError: If a placeholder field is absent
        EmptyParamError: If a placeholder field is null or blank
        PathResolutionError: If ``fields`` is not an Object

    """
    if not params:
        return
    if not is_object(fields):
        msg = f"settings structure is {kind_of(fields)}, not an object"
        raise PathResolutionError(msg, target)
    for param in params:
        if param not in fields:
            raise MissingParamError(param, target)
        if _is_empty_param(fields[param]):
            raise EmptyParamError(param, target)


def _param_text(param: str, value: Value, template: str) -> str:
    if value is None or not is_scalar(value):
        msg = f"path param '{param}' is {kind_of(value)}, expected a scalar"
        raise PathResolutionError(msg, template)
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if text in _DOT_SEGMENTS or any(c in text for c in _SEPARATORS):
        msg = f"path param '{param}' value {text!r} is not a single segment"
        raise PathResolutionError(msg, template)
    return text


def resolve(
    template: str, fields: Value, base_path: Path | str | None = None
) -> Path:
    """Fill every placeholder of ``template`` from ``fields``.

    Args:
        template: Path template
        fields: Serialized instance (an Object)
        base_path: Directory relative templates are resolved against

    Returns:
        The resolved path

    Raises:
        PathResolutionError: If a placeholder is missing or empty, is
            not a scalar, or does not fit in one path segment

    """
    params = extract_params(template)
    validate_params(params, fields, template)

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if not name:
            return match.group(0)
        return _param_text(name, fields[name], template)

    resolved = Path(_PARAM_RE.sub(substitute, template))
    if base_path is not None and not resolved.is_absolute():
        return Path(base_path) / resolved
    return resolved


def strip_params(delta: Value | None, params: list[str]) -> Value | None:
    """Remove placeholder fields from a delta.

    Returns:
        The stripped delta, or None when nothing else is left

    """
    if delta is None or not params or not is_object(delta):
        return delta
    stripped = {k: v for k, v in delta.items() if k not in params}
    return stripped or None


def copy_params(source: Value, target: Value, params: list[str]) -> Value:
    """Copy placeholder fields from ``source`` into a copy of ``target``.

    Fields ``source`` does not carry are left alone.
    """
    if not params or not (is_object(source) and is_object(target)):
        return target
    copied = dict(target)
    for param in params:
        if param in source:
            copied[param] = clone(source[param])
    return copied


@dataclass(frozen=True)
class PathTemplate:
    """A path template with its placeholders parsed once."""

    template: str
    params: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        """Parse placeholders and reject templates that name no file."""
        if not self.template.strip():
            msg = "path template must not be empty"
            raise PathResolutionError(msg)
        object.__setattr__(
            self, "params", tuple(extract_params(self.template))
        )

    @property
    def extension(self) -> str:
        """Suffix of the template's file name, without the dot."""
        return Path(self.template).suffix.lstrip(".")

    def resolve(
        self, fields: Value, base_path: Path | str | None = None
    ) -> Path:
        """Resolve against a serialized instance."""
        return resolve(self.template, fields, base_path)

    def __str__(self) -> str:
        return self.template


def split_store_name(name: str) -> tuple[str | None, str]:
    """Split a ``[token]`` prefix off a store name.

    Example:
        >>> split_store_name("[slot1]")
        ('slot1', '')
        >>> split_store_name("game[slot2]")
        ('slot2', 'game')
        >>> split_store_name("settings")
        (None, 'settings')

    """
    match = _STORE_PREFIX_RE.match(name.strip())
    if match is None:
        return None, name.strip()
    if match.group("lead") is not None:
        return match.group("lead").strip(), match.group("rest").strip()
    return match.group("trail").strip(), match.group("stem").strip()


def section_filename(
    store_name: str, section_name: str, extension: str
) -> str:
    """Return the file name for one section of a store.

    Stores without a ``[token]`` keep everything in ``store_name.ext``;
    prefixed stores write ``token_SectionName.ext`` per section.
    """
    prefix, stem = split_store_name(store_name)
    extension = extension.lstrip(".")
    if prefix is None:
        return f"{stem}.{extension}"
    return f"{prefix}{STORE_PREFIX_SEPARATOR}{section_name}.{extension}"

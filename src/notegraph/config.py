"""View configuration from a JSON5-tolerant config file."""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

logger = logging.getLogger('notegraph')

CONFIG_FILE = 'config.json'


@dataclass
class ViewConfig:
    """Initial state for a graph view session."""

    layout: str = 'force'
    show_labels: bool = True
    show_connections: bool = True
    filter_category: str = 'all'
    width: int = 1200
    height: int = 800
    iterations: int = 50
    repulsion: float = 5000.0
    attraction: float = 0.01
    time_step: float = 0.1


def strip_json5(s: str) -> str:
    """Remove // line comments and trailing commas from JSON5 input."""
    result = []
    in_string = False
    escaped = False
    i = 0
    while i < len(s):
        ch = s[i]
        if escaped:
            result.append(ch)
            escaped = False
            i += 1
            continue
        if in_string:
            if ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            result.append(ch)
            i += 1
            continue
        if ch == '"':
            in_string = True
            result.append(ch)
            i += 1
            continue
        if ch == '/' and i + 1 < len(s) and s[i + 1] == '/':
            while i < len(s) and s[i] != '\n':
                i += 1
            continue
        if ch == ',':
            j = i + 1
            while j < len(s) and s[j] in ' \t\n\r':
                j += 1
            if j < len(s) and s[j] in ']}':
                i += 1
                continue
        result.append(ch)
        i += 1
    return ''.join(result)


def read_json_file(path: str) -> dict:
    """Read a JSON file into a dict. Returns empty dict if file doesn't exist."""
    try:
        data = Path(path).read_text()
    except OSError:
        return {}
    if not data.strip():
        return {}
    return json.loads(strip_json5(data))


def config_path(data_dir: str) -> str:
    """Return <data_dir>/config.json, or $NOTEGRAPH_CONFIG when set."""
    return os.environ.get(
        'NOTEGRAPH_CONFIG', os.path.join(data_dir, CONFIG_FILE))


def _coerce(name: str, kind: type, value: object) -> object:
    """Convert a config value to the field type or raise ValueError."""
    if kind is bool:
        if isinstance(value, bool):
            return value
        raise ValueError(f'view.{name}: expected true or false, got {value!r}')
    if kind is str:
        if isinstance(value, str):
            return value
        raise ValueError(f'view.{name}: expected a string, got {value!r}')
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f'view.{name}: expected a number, got {value!r}')
    if kind is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f'view.{name}: expected int, got {value!r}')
    try:
        return kind(value)
    except ValueError:
        raise ValueError(
            f'view.{name}: expected {kind.__name__}, got {value!r}') from None


def load_view_config(data_dir: str) -> ViewConfig:
    """Build a ViewConfig from the `view` section of the config file.

    Values are converted to the field types; a value that does not convert
    raises ValueError. Unknown keys are ignored.
    """
    settings = read_json_file(config_path(data_dir))
    raw = settings.get('view') if isinstance(settings, dict) else None
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError('view: expected an object')
    types = {f.name: f.type for f in fields(ViewConfig)}
    values = {}
    for key, value in raw.items():
        if key not in types:
            logger.debug('ignoring unknown view setting %r', key)
            continue
        values[key] = _coerce(key, types[key], value)
    return ViewConfig(**values)

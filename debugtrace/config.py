"""config.py - Immutable configuration record and its YAML loader.

A Config is loaded once, when the Tracer first runs, and is read-only from
then on. Every key is optional: missing keys, a missing file, a malformed
document or a value of the wrong type all fall back to the built-in default
for that key. Problems other than a missing file are collected in
``Config.warnings`` so the Tracer can report them through its sink.

Example ``debugtrace.yml``::

    logger: file
    log_path: +/tmp/debugtrace.log
    maximum_data_output_width: 100
    collection_limit: 64
"""

import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Tuple

import yaml

DEFAULT_CONFIG_PATH = "./debugtrace.yml"
CONFIG_PATH_ENV = "DEBUGTRACE_CONFIG"
NO_CONFIG_FILE = "<No config file>"

# Sample arguments used to check that a template accepts its parameters.
_TEMPLATE_ARGS: Dict[str, Tuple[Any, ...]] = {
    "enter_format": ("name", "file.py", 1, "parent", "parent.py", 2),
    "leave_format": ("name", "file.py", 1, 0.5),
    "thread_boundary_format": ("MainThread", 1),
    "print_suffix_format": ("name", "file.py", 1),
    "size_format": (1,),
    "length_format": (1,),
    "error_format": ("ValueError", "message"),
}

# Smallest accepted value of each numeric key.
_MINIMUMS: Dict[str, int] = {
    "maximum_indents": 0,
    "minimum_output_size": 0,
    "minimum_output_length": 0,
    "reflection_limit": 0,
    "maximum_data_output_width": 1,
    "bytes_count_in_line": 1,
    "collection_limit": 1,
    "bytes_limit": 1,
    "string_limit": 1,
}


@dataclass(frozen=True)
class Config:
    """Formatting thresholds, text templates and sink selection.

    Templates use ``str.format`` positional fields; see ``_TEMPLATE_ARGS``
    for the arguments each one receives.
    """

    logger: str = "stderr"
    log_path: str = "debugtrace.log"
    logging_datetime_format: str = "%Y-%m-%d %H:%M:%S.%f%z"
    enabled: bool = True
    enter_format: str = "Enter {0} ({1}:{2}) <- {3} ({4}:{5})"
    leave_format: str = "Leave {0} ({1}:{2}) duration: {3:.3f} ms"
    thread_boundary_format: str = (
        "______________________________ {0} #{1} ______________________________"
    )
    print_suffix_format: str = " ({1}:{2})"
    maximum_indents: int = 32
    indent_string: str = "| "
    data_indent_string: str = "  "
    limit_string: str = "..."
    cyclic_reference_string: str = "*** Cyclic Reference ***"
    varname_value_separator: str = " = "
    key_value_separator: str = ": "
    size_format: str = "(size:{0})"
    minimum_output_size: int = 16
    length_format: str = "(length:{0})"
    minimum_output_length: int = 16
    maximum_data_output_width: int = 70
    bytes_count_in_line: int = 16
    collection_limit: int = 128
    bytes_limit: int = 256
    string_limit: int = 256
    reflection_limit: int = 4
    date_format: str = "%Y-%m-%d"
    time_format: str = "%H:%M:%S.%f"
    datetime_format: str = "%Y-%m-%d %H:%M:%S.%f%z"
    error_format: str = "*** {0}: {1} ***"

    config_path: str = field(default=NO_CONFIG_FILE, compare=False)
    warnings: Tuple[str, ...] = field(default=(), compare=False)


_KEYS = tuple(f for f in fields(Config) if f.name not in ("config_path", "warnings"))


def _type_matches(value: Any, expected: type) -> bool:
    # bool is a subclass of int; keep them apart in both directions.
    if expected is bool or isinstance(value, bool):
        return type(value) is expected
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


def _pick(raw: Dict[str, Any], path: str, warnings: List[str]) -> Dict[str, Any]:
    defaults = Config()
    picked: Dict[str, Any] = {}
    for key in _KEYS:
        if key.name not in raw or raw[key.name] is None:
            continue
        value = raw[key.name]
        expected = type(getattr(defaults, key.name))
        if not _type_matches(value, expected):
            warnings.append(
                f"debugtrace: ({path}) {key.name} = {value!r} is not "
                f"{expected.__name__}, using default {getattr(defaults, key.name)!r}"
            )
            continue
        if key.name in _MINIMUMS and value < _MINIMUMS[key.name]:
            warnings.append(
                f"debugtrace: ({path}) {key.name} = {value!r} is less than "
                f"{_MINIMUMS[key.name]}, using default {getattr(defaults, key.name)!r}"
            )
            continue
        if key.name in _TEMPLATE_ARGS:
            try:
                value.format(*_TEMPLATE_ARGS[key.name])
            except (IndexError, KeyError, ValueError) as exc:
                warnings.append(
                    f"debugtrace: ({path}) {key.name} = {value!r} is not a usable "
                    f"template ({exc}), using default"
                )
                continue
        picked[key.name] = value

    for key in raw:
        if key not in picked and not any(k.name == key for k in _KEYS):
            warnings.append(f"debugtrace: ({path}) unknown key {key!r} ignored")
    return picked


def load_config(path: str = "") -> Config:
    """Load a Config from a YAML file, falling back to defaults.

    Args:
        path: Path of the YAML document. When empty, the ``DEBUGTRACE_CONFIG``
            environment variable is used, then ``./debugtrace.yml``.

    Returns:
        A frozen Config. ``config_path`` is ``"<No config file>"`` when the
        file does not exist.
    """
    path = path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH
    if not os.path.exists(path):
        return Config()

    warnings: List[str] = []
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        warnings.append(f"debugtrace: ({path}) cannot be loaded: {exc}")
        raw = {}

    if raw is None:
        raw = {}
    elif not isinstance(raw, dict):
        warnings.append(
            f"debugtrace: ({path}) must contain a mapping, got {type(raw).__name__}"
        )
        raw = {}

    picked = _pick(raw, path, warnings)
    return replace(Config(**picked), config_path=path, warnings=tuple(warnings))

"""
Repository setup and validation.

A repository is ready for git-toolbox when its configuration file is staged,
the content filter is registered in the repository git config and every
managed dictionary is assigned the filter in .git/info/attributes.
"""

import logging
import re
from typing import Callable, List, Optional, Set, Tuple

from toolbox_core.errors import ConfigurationNeededError, FileReadError, FileWriteError
from toolbox_core.models.config import ToolboxConfig
from toolbox_core.storage.repository import ToolboxRepository
from .defaults import CONFIG_FILE, GIT_COMMENT, GIT_CONFIG, GIT_FILTER_ATTR
from .loader import ConfigurationLoader

logger = logging.getLogger(__name__)


GIT_FILTER_ATTR_RE = re.compile(rf"\b{re.escape(GIT_FILTER_ATTR)}\b")

_C_ESCAPES = {
    '\t': '\\t',
    '\r': '\\r',
    '\n': '\\n',
    '\\': '\\\\',
    "'": "\\'",
    '"': '\\"',
}


def c_escape_str(text: str) -> str:
    """Quote a string using C escaping rules, leaving non-ASCII characters alone"""
    escaped = []
    for c in text:
        if c in _C_ESCAPES:
            escaped.append(_C_ESCAPES[c])
        elif c.isascii() and not c.isprintable():
            escaped.append(f"\\{ord(c):03o}")
        else:
            escaped.append(c)
    return '"' + ''.join(escaped) + '"'


def parse_attribute_line(line: str) -> Tuple[str, str]:
    """
    Split a gitattributes line into its pattern and attributes.

    Quoted patterns may contain escaped quotes and spaces.
    """
    line = line.strip()

    if line.startswith('"'):
        end = len(line)
        escaped = False
        for index, c in enumerate(line[1:], start=1):
            if c == '"' and not escaped:
                end = index + 1
                break
            escaped = c == '\\' and not escaped
    else:
        end = line.find(' ')
        if end == -1:
            end = len(line)

    return line[:end], line[end:]


def _filtered_patterns(attributes: str) -> Set[str]:
    patterns = set()
    for line in attributes.splitlines():
        pattern, attrs = parse_attribute_line(line)
        if GIT_FILTER_ATTR_RE.search(attrs):
            patterns.add(pattern)
    return patterns


def validate_repository(repo: ToolboxRepository) -> ToolboxConfig:
    """
    Load the configuration and make sure the repository is set up for it.

    Raises:
        ConfigurationMissingError: if there is no configuration file
        ConfigurationChangedError: if the configuration file is not staged
        ConfigurationNeededError: if git config or attributes are out of date
    """
    config = ConfigurationLoader(repo).load_committed()

    for (section, option), value in GIT_CONFIG.items():
        current = repo.get_config(section, option)
        if current is None or current.strip() != value.strip():
            logger.debug(f"git config {section}.{option} is {current!r}, expected {value!r}")
            raise ConfigurationNeededError()

    patterns = _filtered_patterns(_read_attributes(repo))
    for cfg in config.dictionaries:
        if cfg.path in patterns:
            patterns.discard(cfg.path)
        elif c_escape_str(cfg.path) in patterns:
            patterns.discard(c_escape_str(cfg.path))
        else:
            logger.debug(f"No filter attribute for {cfg.path}")
            raise ConfigurationNeededError()

    if patterns:
        logger.debug(f"Filter attribute set on unmanaged paths: {sorted(patterns)}")
        raise ConfigurationNeededError()

    return config


def configure_repository(repo: ToolboxRepository,
                         notify: Optional[Callable[[str], None]] = None) -> ToolboxConfig:
    """
    Set the repository up for the current configuration file.

    Stages the configuration file if it changed, registers the content
    filter and rewrites the managed section of the attributes file.
    """
    loader = ConfigurationLoader(repo)
    local = loader.load_local()

    if not loader.is_staged():
        repo.add_to_index([CONFIG_FILE])
        repo.write_index()
        if notify:
            notify(f"git add {CONFIG_FILE}")

    repo.set_config(GIT_CONFIG)
    if notify:
        notify("updated git config file")

    managed_paths = set()
    for cfg in local.dictionaries:
        managed_paths.add(cfg.path)
        managed_paths.add(c_escape_str(cfg.path))

    lines: List[str] = []
    for line in _read_attributes(repo).splitlines():
        pattern, attrs = parse_attribute_line(line)
        if pattern in managed_paths or GIT_FILTER_ATTR_RE.search(attrs):
            continue
        if line.strip() == GIT_COMMENT:
            continue
        lines.append(line)

    lines.append(GIT_COMMENT)
    lines.extend(f"{c_escape_str(cfg.path)} {GIT_FILTER_ATTR}" for cfg in local.dictionaries)

    try:
        repo.write_attributes("\n".join(lines) + "\n")
    except OSError as e:
        raise FileWriteError(repo.attributes_path, str(e)) from e
    if notify:
        notify("updated git attributes file")

    logger.info(f"Configured repository for {len(local.dictionaries)} dictionaries")
    return local


def _read_attributes(repo: ToolboxRepository) -> str:
    try:
        return repo.read_attributes()
    except OSError as e:
        raise FileReadError(repo.attributes_path, str(e)) from e


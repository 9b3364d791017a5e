"""
Configuration loading for git-toolbox.

Reads git-toolbox.toml from the working tree and from the index, parses it
and validates it into a ToolboxConfig.
"""

import logging
import re
import tomllib
from typing import Optional

from pydantic import ValidationError

from toolbox_core.errors import (
    ConfigurationChangedError,
    ConfigurationError,
    ConfigurationExistsError,
    ConfigurationMissingError,
    FileReadError,
    FileWriteError,
)
from toolbox_core.models.config import ToolboxConfig
from toolbox_core.storage.repository import ToolboxRepository
from .defaults import CONFIG_FILE, CONFIG_FILE_EXAMPLE

logger = logging.getLogger(__name__)


_TOML_POSITION_RE = re.compile(r"at line (\d+), column (\d+)")


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail['loc'])
        messages.append(f"{location}: {detail['msg']}" if location else detail['msg'])
    return "; ".join(messages)


def parse_config(data: bytes) -> ToolboxConfig:
    """
    Parse configuration file contents.

    Raises:
        ConfigurationError: if the text is not valid UTF-8 TOML or does not
            describe a valid configuration
    """
    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise ConfigurationError(str(e)) from e

    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        match = _TOML_POSITION_RE.search(str(e))
        at = (int(match.group(1)), int(match.group(2))) if match else None
        raise ConfigurationError(str(e), at) from e

    try:
        return ToolboxConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e


class ConfigurationLoader:
    """Load the configuration of a repository"""

    def __init__(self, repo: ToolboxRepository):
        self.repo = repo
        self.config_path = repo.workdir / CONFIG_FILE

    def read_local(self) -> Optional[bytes]:
        """Working tree copy of the configuration file, None if missing"""
        try:
            return self.config_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise FileReadError(self.config_path, str(e)) from e

    def read_staged(self) -> Optional[bytes]:
        """Staged copy of the configuration file, None if not tracked"""
        return self.repo.read_staged_file(CONFIG_FILE)

    def is_staged(self) -> bool:
        """Check whether the working copy is the staged one"""
        local = self.read_local()
        return local is not None and local == self.read_staged()

    def load_local(self) -> ToolboxConfig:
        """Parse the working tree copy without comparing it to the index"""
        local = self.read_local()
        if local is None:
            raise ConfigurationMissingError(CONFIG_FILE)
        return parse_config(local)

    def load_committed(self) -> ToolboxConfig:
        """
        Parse the configuration, requiring the working copy to be staged.

        Raises:
            ConfigurationMissingError: if there is no configuration file
            ConfigurationChangedError: if the working copy differs from the index
        """
        local = self.read_local()
        if local is None:
            raise ConfigurationMissingError(CONFIG_FILE)
        if local != self.read_staged():
            raise ConfigurationChangedError(CONFIG_FILE)

        config = parse_config(local)
        logger.debug(f"Loaded {CONFIG_FILE} with {len(config.dictionaries)} dictionaries")
        return config

    def write_example(self) -> None:
        """Create a sample configuration file"""
        if self.config_path.exists():
            raise ConfigurationExistsError(CONFIG_FILE)
        try:
            self.config_path.write_text(CONFIG_FILE_EXAMPLE, encoding='utf-8')
        except OSError as e:
            raise FileWriteError(self.config_path, str(e)) from e

        logger.info(f"Created {self.config_path}")

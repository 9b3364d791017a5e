"""
Configuration models for git-toolbox.

Handles the managed dictionary declarations read from git-toolbox.toml and
process-wide settings taken from the environment.
"""

import re
from enum import Enum
from typing import List, Optional, Pattern

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import NotAManagedFileError


# Accepts any non-empty id without a namespace
DEFAULT_ID_SPEC = r"(?P<namespace>)(?P<id>.+)"

MARKER = "\\"


def _kebab(name: str) -> str:
    return name.replace('_', '-')


def read_marker(value: str) -> str:
    """Turn a tag name from the configuration file into a tag marker"""
    value = value.strip()
    if value.startswith(MARKER):
        value = value[len(MARKER):]
    if not value:
        raise ValueError("tag name cannot be empty")
    if any(c.isspace() for c in value):
        raise ValueError(f"tag name cannot contain whitespace: {value!r}")
    return MARKER + value


class UserRole(Enum):
    """Roles of repository users"""
    USER = "user"
    MANAGER = "manager"


class UserConfig(BaseModel):
    """A repository user"""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    role: UserRole = UserRole.USER
    namespace: Optional[str] = None


class DictionaryConfig(BaseModel):
    """A managed Toolbox dictionary"""
    model_config = ConfigDict(
        alias_generator=_kebab,
        populate_by_name=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )

    name: str
    path: str

    # Tag markers, stored with the leading backslash
    record_tag: str
    id_tag: Optional[str] = None
    lifecycle_tag: Optional[str] = None

    # Unique id handling
    unique_id: bool = False
    id_spec: Pattern = Field(default_factory=lambda: re.compile(DEFAULT_ID_SPEC))

    # Reserved, not implemented
    lifecycle: bool = False

    @field_validator('record_tag')
    @classmethod
    def validate_record_tag(cls, v: str) -> str:
        return read_marker(v)

    @field_validator('id_tag', 'lifecycle_tag')
    @classmethod
    def validate_optional_tag(cls, v: Optional[str]) -> Optional[str]:
        return read_marker(v) if v is not None else None

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Paths are relative to the working tree and use forward slashes"""
        v = v.replace('\\', '/').strip('/')
        if not v:
            raise ValueError('dictionary path cannot be empty')
        return v

    @field_validator('id_spec')
    @classmethod
    def validate_id_spec(cls, v: Pattern) -> Pattern:
        """The id pattern must define the `namespace` and `id` groups"""
        for group in ('namespace', 'id'):
            if group not in v.groupindex:
                raise ValueError(f"ID regex has to contain the group (?P<{group}>...)")
        return v

    @model_validator(mode='after')
    def validate_unique_id(self) -> 'DictionaryConfig':
        if self.unique_id and self.id_tag is None:
            raise ValueError(f"dictionary {self.path!r} uses unique ids but has no id-tag")
        return self

    @property
    def contents_root(self) -> str:
        """Directory holding the decomposed contents"""
        return f"{self.path}.contents"


class ToolboxConfig(BaseModel):
    """Contents of git-toolbox.toml"""
    model_config = ConfigDict(populate_by_name=True)

    users: List[UserConfig] = Field(default_factory=list, alias="user")
    dictionaries: List[DictionaryConfig] = Field(default_factory=list, alias="dictionary")

    def dictionary_by_path(self, path: str) -> DictionaryConfig:
        """Locate the dictionary config by path (relative to the working tree)"""
        path = path.replace('\\', '/')
        matches = [cfg for cfg in self.dictionaries if cfg.path == path]
        if len(matches) != 1:
            raise NotAManagedFileError(path)
        return matches[0]


class ToolboxSettings(BaseSettings):
    """Process settings with environment variable support"""
    model_config = SettingsConfigDict(
        env_prefix="GIT_TOOLBOX_",
        case_sensitive=False
    )

    log_level: str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    max_to_show: int = Field(default=8, ge=1)

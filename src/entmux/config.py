"""Configuration objects for classification and storage."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
import tempfile

from entmux.errors import ConfigurationError


_STORE_DIR_ENV = "ENTMUX_STORE_DIR"
_MONGO_URI_ENV = "ENTMUX_MONGO_URI"
_MONGO_DATABASE_ENV = "ENTMUX_MONGO_DATABASE"
_DEFAULT_MONGO_URI = "mongodb://localhost:27017"
_DEFAULT_MONGO_DATABASE = "entmux"


@dataclass(frozen=True)
class TokenSet:
    """Handle-tag characters that classify a field for an operation."""

    create: str = "c"
    edit: str = "e"
    delete: str = "d"

    def __post_init__(self) -> None:
        chars = [self.create, self.edit, self.delete]
        for char in chars:
            if not isinstance(char, str) or len(char) != 1:
                raise ConfigurationError("Handle tokens must be single characters.")
        if len(set(chars)) != len(chars):
            raise ConfigurationError("Handle tokens must be distinct.")


@dataclass(frozen=True)
class MuxConfig:
    """Compile-time settings shared by the classifier, registry and filters."""

    tokens: TokenSet = field(default_factory=TokenSet)
    suppress_prefix: str = "!"
    primary_key: str = "_id"
    affirmative: str = "true"
    index_direction: int = 1
    unique_axis_index: bool = True

    def __post_init__(self) -> None:
        if not self.suppress_prefix:
            raise ConfigurationError("suppress_prefix must be non-empty.")
        if not self.primary_key:
            raise ConfigurationError("primary_key must be non-empty.")
        if self.index_direction not in (1, -1):
            raise ConfigurationError("index_direction must be 1 or -1.")

    def is_affirmative(self, value: object) -> bool:
        return isinstance(value, str) and value == self.affirmative


DEFAULT_CONFIG = MuxConfig()


def store_dir() -> Path:
    env_dir = os.environ.get(_STORE_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path(tempfile.gettempdir()) / "entmux" / "store"


@dataclass(frozen=True)
class MongoCfg:
    uri: str
    database: str

    @staticmethod
    def from_env() -> "MongoCfg":
        return MongoCfg(
            uri=os.environ.get(_MONGO_URI_ENV) or _DEFAULT_MONGO_URI,
            database=os.environ.get(_MONGO_DATABASE_ENV) or _DEFAULT_MONGO_DATABASE,
        )

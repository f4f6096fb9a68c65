"""
Sink configuration.

All tuneable values live here. Import from this module everywhere —
never hardcode batch sizes, insert modes, or Oracle limits inline.

Usage:
    from sinkbatch.configs.config import SinkConfig
    cfg = SinkConfig()                  # defaults / environment
    cfg = SinkConfig(batch_size=500)
    cfg = SinkConfig.from_env_file()    # .env first, then defaults / environment

Environment overrides (optional) must be in ``os.environ`` before the config
object is constructed.  ``from_env_file`` loads a ``.env`` file into
``os.environ`` first; variables already set in the environment win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from sinkbatch.configs.exceptions import ConfigurationError


# Oracle hard limits (do not change unless Oracle version changes)
ORACLE_MAX_IDENTIFIER_LEN_LEGACY: int = 30
"""Max identifier length for Oracle < 12.2 (pre-long-identifiers)."""

ORACLE_MAX_IDENTIFIER_LEN_EXTENDED: int = 128
"""Max identifier length for Oracle >= 12.2 with COMPATIBLE >= 12.2."""

INSERT_MODES: tuple[str, ...] = ("insert", "upsert")
"""Statement flavours understood by ``statements.oracle.builder_for_mode``."""


@dataclass(slots=True)
class SinkConfig:
    """
    Runtime configuration for the sink writer.

    Attributes:
        batch_size: Maximum number of rows grouped into one executemany call.
            Wide rows (many large columns) → lower this. Narrow rows → raise it.
        error_dir: Directory holding the append-only batch error log.
        schema_name: Optional schema/owner prefix for generated statements.
            Empty means unqualified table names.
        insert_mode: ``insert`` for plain INSERT, ``upsert`` for MERGE on key columns.
        oracle_max_identifier_len: Set to 30 for legacy Oracle, 128 for extended.
    """

    batch_size: int = field(
        default_factory=lambda: int(os.environ.get("BATCH_SIZE", "3000"))
    )
    error_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("ERROR_DIR", "data/error"))
    )
    schema_name: str = field(
        default_factory=lambda: os.environ.get("SINK_SCHEMA", "")
    )
    insert_mode: str = field(
        default_factory=lambda: os.environ.get("INSERT_MODE", "insert").lower()
    )
    oracle_max_identifier_len: int = field(
        default_factory=lambda: int(
            os.environ.get("ORACLE_MAX_IDENTIFIER_LEN", str(ORACLE_MAX_IDENTIFIER_LEN_LEGACY))
        )
    )

    @classmethod
    def from_env_file(cls, env_file: str | Path | None = None, **overrides) -> "SinkConfig":
        """
        Load ``env_file`` into ``os.environ`` and build a config from it.

        Args:
            env_file:  Path to a ``.env`` file.  ``None`` searches for the
                       nearest ``.env`` from the working directory upwards.
            overrides: Explicit field values; these beat the environment.
        """
        load_dotenv(env_file if env_file is not None else find_dotenv(usecwd=True))
        return cls(**overrides)

    def validate(self) -> "SinkConfig":
        """
        Check every setting and return ``self`` so calls can be chained.

        Raises:
            ConfigurationError: If ``batch_size`` is not positive, ``insert_mode``
                is unknown, or ``oracle_max_identifier_len`` is out of range.
        """
        if self.batch_size <= 0:
            raise ConfigurationError(
                "Invalid batch_size specified. The value has to be a positive and non zero integer.",
                setting="batch_size",
                value=self.batch_size,
            )
        if self.insert_mode not in INSERT_MODES:
            raise ConfigurationError(
                f"Unknown insert_mode. Valid modes: {list(INSERT_MODES)}",
                setting="insert_mode",
                value=self.insert_mode,
            )
        if not 1 <= self.oracle_max_identifier_len <= ORACLE_MAX_IDENTIFIER_LEN_EXTENDED:
            raise ConfigurationError(
                f"oracle_max_identifier_len must be between 1 and {ORACLE_MAX_IDENTIFIER_LEN_EXTENDED}.",
                setting="oracle_max_identifier_len",
                value=self.oracle_max_identifier_len,
            )
        return self

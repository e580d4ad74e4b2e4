"""Pydantic models for database and designer configuration."""

from typing import Literal

from pydantic import BaseModel, Field

from mysql_designer.schema.ddl import DEFAULT_CHARSET, DEFAULT_COLLATION, DEFAULT_ENGINE
from mysql_designer.schema.models import SynthesisPolicy, TableOptions


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    provider: str = "mysql"


class DesignerSettings(BaseModel):
    """The ``[designer]`` table of db.toml.

    Strategy fields choose how much unchanged structure an ``ALTER TABLE``
    restates.  ``engine``/``charset``/``collation`` seed the options of a new
    table.
    """

    column_strategy: Literal["always", "changed"] = "always"
    index_strategy: Literal["recreate", "changed"] = "recreate"
    options_strategy: Literal["always", "changed"] = "always"
    engine: str = DEFAULT_ENGINE
    charset: str = DEFAULT_CHARSET
    collation: str = DEFAULT_COLLATION

    @property
    def policy(self) -> SynthesisPolicy:
        return SynthesisPolicy(
            column_strategy=self.column_strategy,
            index_strategy=self.index_strategy,
            options_strategy=self.options_strategy,
        )

    @property
    def default_options(self) -> TableOptions:
        return TableOptions(engine=self.engine, charset=self.charset, collation=self.collation)


class DatabaseConfig(BaseModel):
    """Complete configuration from db.toml."""

    profiles: dict[str, DatabaseProfile]
    designer: DesignerSettings = Field(default_factory=DesignerSettings)

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.engine import URL


class DatabaseConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    driver: str = "mysql+mysqlconnector"
    host: str = "127.0.0.1"
    port: int = Field(default=3306, gt=0)
    user: str = "root"
    password: str = ""

    def url_for(self, database: str) -> str:
        """Build a connection URL for one database on this server."""
        url = URL.create(
            self.driver,
            username=self.user or None,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=database,
        )
        return url.render_as_string(hide_password=False)


class BridgeSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # None means "the interpreter running the orchestrator"
    python_executable: str | None = None
    timeout_s: float = Field(default=60.0, gt=0)
    scratch_root: str | None = None
    debug: bool = False
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

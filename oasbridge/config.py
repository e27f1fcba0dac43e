"""Mapping options.

Defaults can be overridden from the environment:
  OASBRIDGE_NILABLE_OPTIONAL  "1"/"true" treats nilable parameters as optional
  OASBRIDGE_CLIENT_NAME       class name of the generated client
  OASBRIDGE_LOG_LEVEL         logging level used by the CLI
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class MappingConfig:
    treat_nilable_as_optional: bool = False
    client_name: str = "Client"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> MappingConfig:
        env = os.environ if environ is None else environ
        config = cls()
        if "OASBRIDGE_NILABLE_OPTIONAL" in env:
            config = replace(
                config,
                treat_nilable_as_optional=env["OASBRIDGE_NILABLE_OPTIONAL"].strip().lower() in _TRUTHY,
            )
        if env.get("OASBRIDGE_CLIENT_NAME"):
            config = replace(config, client_name=env["OASBRIDGE_CLIENT_NAME"])
        if env.get("OASBRIDGE_LOG_LEVEL"):
            config = replace(config, log_level=env["OASBRIDGE_LOG_LEVEL"].upper())
        return config

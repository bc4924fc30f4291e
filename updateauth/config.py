"""
Configuration module for updateauth.

Centralizes deployment configuration with environment variable support
and validated loading of the maintainer registration file.
"""

import json
import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .principals import Maintainers

# ============================================================
# Environment Configuration
# ============================================================

# Deployment environment (dev|stage|prod), stamped on every structured log line
ENV = os.getenv("UPDATEAUTH_ENV", "dev")

# Gate for the trusted-network restriction on maintainer-sponsored updates
RESTRICT_MAINTAINER_NETWORK = os.getenv("UPDATEAUTH_RESTRICT_MAINTAINER_NETWORK", "true").lower() in ("1", "true", "yes")

# Comma-separated CIDR ranges
TRUSTED_RANGES = os.getenv("UPDATEAUTH_TRUSTED_RANGES", "")

# Paths
MAINTAINERS_PATH = os.getenv("UPDATEAUTH_MAINTAINERS_PATH", "config/maintainers.json")

# Logging
LOG_LEVEL = os.getenv("UPDATEAUTH_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("UPDATEAUTH_LOG_JSON", "true").lower() in ("1", "true", "yes")

# More password credentials than this on one update are refused outright
MAX_PASSWORD_CREDENTIALS = 20


# ============================================================
# Maintainer registration
# ============================================================

class MaintainersConfig(BaseModel):
    """Schema of the maintainer registration file."""
    model_config = ConfigDict(extra="forbid")

    power_maintainers: List[str] = Field(default_factory=list)
    enduser_maintainers: List[str] = Field(default_factory=list)
    alloc_maintainers: List[str] = Field(default_factory=list)
    rs_maintainers: List[str] = Field(default_factory=list)
    enum_maintainers: List[str] = Field(default_factory=list)
    dbm_maintainers: List[str] = Field(default_factory=list)

    @field_validator("*")
    @classmethod
    def _names_not_blank(cls, names: List[str]) -> List[str]:
        for name in names:
            if not name.strip():
                raise ValueError("maintainer names must not be blank")
        return [name.strip() for name in names]

    def to_maintainers(self) -> Maintainers:
        return Maintainers(
            power=frozenset(self.power_maintainers),
            enduser=frozenset(self.enduser_maintainers),
            alloc=frozenset(self.alloc_maintainers),
            rs=frozenset(self.rs_maintainers),
            enum=frozenset(self.enum_maintainers),
            dbm=frozenset(self.dbm_maintainers),
        )


def parse_maintainers(data: Dict[str, Any]) -> Maintainers:
    """Validate a maintainer registration mapping. Raises pydantic.ValidationError."""
    return MaintainersConfig.model_validate(data).to_maintainers()


def load_maintainers(path: Optional[str] = None) -> Maintainers:
    """Load and validate the maintainer registration file."""
    path = path or MAINTAINERS_PATH
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return parse_maintainers(data)


def load_trusted_ranges(value: Optional[str] = None) -> List[str]:
    """Split a comma-separated CIDR list, ignoring blanks."""
    value = TRUSTED_RANGES if value is None else value
    return [r.strip() for r in value.split(",") if r.strip()]

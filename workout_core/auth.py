# workout_core/auth.py
# =============================================================================
# Shared-secret basic-auth credentials, passed explicitly to HTTP collaborators.
# =============================================================================

from __future__ import annotations

import base64
import os
from typing import Optional

from pydantic import BaseModel, SecretStr, field_validator


class AuthContext(BaseModel):
    username: str
    password: SecretStr

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not v or ":" in v:
            raise ValueError("username must be non-empty and must not contain ':'")
        return v

    def token(self) -> str:
        raw = f"{self.username}:{self.password.get_secret_value()}"
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")

    def header(self) -> str:
        """Value for the ``Authorization`` request header."""
        return f"Basic {self.token()}"

    @classmethod
    def from_env(cls) -> Optional["AuthContext"]:
        """Build from WORKOUT_API_USERNAME / WORKOUT_API_PASSWORD, if both are set."""
        username = os.getenv("WORKOUT_API_USERNAME")
        password = os.getenv("WORKOUT_API_PASSWORD")
        if not username or password is None:
            return None
        return cls(username=username, password=password)

"""YAML fixture files: seed data for candidate profiles and jobs."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from src.core.schemas import CandidateRecord, JobRecord


class FixtureData(BaseModel):
    """Contents of a fixture file: top-level `candidates:` and `jobs:` lists."""

    candidates: list[CandidateRecord] = Field(default_factory=list)
    jobs: list[JobRecord] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "FixtureData":
        """Load fixtures from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Fixture file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

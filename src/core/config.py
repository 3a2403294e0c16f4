"""Configuration models and YAML loader for the matching engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from src.core.schemas import AssignmentType


class ScoreWeights(BaseModel):
    """Maximum points for each match sub-score. Must sum to 100."""

    skills: float = Field(default=40.0, ge=0.0)
    carriers: float = Field(default=20.0, ge=0.0)
    work_type: float = Field(default=20.0, ge=0.0)
    budget: float = Field(default=20.0, ge=0.0)

    @model_validator(mode="after")
    def weights_sum_to_hundred(self) -> "ScoreWeights":
        total = self.skills + self.carriers + self.work_type + self.budget
        if abs(total - 100.0) > 1e-6:
            msg = f"score weights must sum to 100, got {total:g}"
            raise ValueError(msg)
        return self


class MatchingConfig(BaseModel):
    """Recommendation threshold and list sizes."""

    threshold: int = Field(default=60, ge=0, le=100)
    per_job_limit: int = Field(default=2, ge=1)
    per_talent_limit: int = Field(default=3, ge=1)
    total_limit: int = Field(default=6, ge=1)
    weights: ScoreWeights = Field(default_factory=ScoreWeights)


class ContractPolicy(BaseModel):
    """Business rules applied when an accepted match becomes a contract."""

    # Share of the total profit credited to each introducing side.
    profit_split: float = Field(default=0.5, ge=0.0, le=1.0)
    default_assignment_type: AssignmentType = AssignmentType.ONGOING


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/matching.db"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    contract: ContractPolicy = Field(default_factory=ContractPolicy)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

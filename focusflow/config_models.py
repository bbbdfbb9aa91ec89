from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from focusflow.intake import DEFAULT_INTAKE_MODEL, MATCH_THRESHOLD
from focusflow.tasks import CONFIG_PATH, DEFAULT_WIP_LIMIT

logger = logging.getLogger(__name__)


# =============================================================================
# TaskEngineConfig (args/task_engine.yaml)
# =============================================================================

class IntakeConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    model: str = Field(default=DEFAULT_INTAKE_MODEL)
    max_tokens: int = Field(default=2048, ge=1)
    temperature: float = Field(default=0.3, ge=0.0, le=1.0)
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_note_chars: int = Field(default=50000, ge=1)


class MatchingConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    threshold: int = Field(default=MATCH_THRESHOLD, ge=0, le=100)
    max_tokens: int = Field(default=1024, ge=1)
    timeout_seconds: float = Field(default=30.0, gt=0)


class PriorityConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    wip_limit: int = Field(default=DEFAULT_WIP_LIMIT, ge=0)


class SummaryConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    max_tokens: int = Field(default=500, ge=1)


class TaskEngineConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    intake: IntakeConfig = Field(default_factory=IntakeConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    priority: PriorityConfig = Field(default_factory=PriorityConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)


def load_task_engine_config(path: Path | None = None) -> TaskEngineConfig:
    yaml_path = path or CONFIG_PATH

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        return TaskEngineConfig.model_validate(raw.get("task_engine", raw))
    except Exception as e:
        logger.warning(f"Config validation failed for {yaml_path}: {e}, using defaults")
        return TaskEngineConfig()

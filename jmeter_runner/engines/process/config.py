"""Configuration for the subprocess engine."""

from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import BaseModel, Field


class ProcessEngineConfig(BaseModel):
    """Configuration for running JMeter as a child process."""

    command: Sequence[str] = Field(
        default=("jmeter",),
        min_length=1,
        description="Command that launches JMeter, arguments are appended to it",
    )
    cwd: Path | None = Field(default=None, description="Working directory")
    env: Mapping[str, str] = Field(
        default_factory=dict, description="Extra environment variables"
    )
    terminate_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for a child to stop before killing it",
    )

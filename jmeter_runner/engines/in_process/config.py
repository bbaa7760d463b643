"""Configuration for the in-process engine."""

from pydantic import BaseModel, Field, field_validator


class InProcessEngineConfig(BaseModel):
    """Configuration for calling an engine entry point in this interpreter."""

    target: str = Field(
        ..., description="Entry point as 'package.module:function'"
    )

    @field_validator("target")
    @classmethod
    def _require_module_and_attribute(cls, value: str) -> str:
        module, _, attribute = value.partition(":")
        if not module or not attribute:
            raise ValueError(f"Expected 'module:function', got '{value}'")
        return value

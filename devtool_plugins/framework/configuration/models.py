"""
Configuration data models with validation.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, ValidationInfo, field_validator


class LoggingConfiguration(BaseModel):
    """Logging system configuration with validation."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="json", pattern="^(json|text)$")
    output: str = Field(default="console", pattern="^(console|file|both)$")
    file_path: Optional[str] = Field(default=None, validate_default=True)

    @field_validator('file_path')
    @classmethod
    def validate_file_path(cls, v, info: ValidationInfo):
        """Validate file path when file output is used."""
        if info.data.get('output') in ['file', 'both'] and not v:
            raise ValueError("file_path is required when output is 'file' or 'both'")
        return v


class RegistryConfiguration(BaseModel):
    """Plugin registry configuration with nested validation."""
    logging_config: LoggingConfiguration = Field(default_factory=LoggingConfiguration)
    max_navigation_history: Optional[int] = Field(default=None, ge=1)
    rebuild_graph_on_change: bool = False
    manifest_paths: List[str] = Field(default_factory=list)

    @field_validator('manifest_paths')
    @classmethod
    def validate_manifest_paths(cls, v):
        """Reject blank manifest directories."""
        for path in v:
            if not str(path).strip():
                raise ValueError("manifest_paths must not contain empty entries")
        return v

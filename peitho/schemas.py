"""
Request/response models for the Docker-compatible API.

Field names follow the Docker Engine JSON so peers can talk to peitho with
an unmodified Docker client.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HostConfigSpec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    NetworkMode: str = ""
    Memory: int = 0


class ContainerSpec(BaseModel):
    """Container create request body."""
    model_config = ConfigDict(extra="ignore")

    Image: str = ""
    Env: List[str] = Field(default_factory=list)
    Cmd: List[str] = Field(default_factory=list)
    Entrypoint: Optional[Union[str, List[str]]] = None
    AttachStdout: bool = False
    AttachStderr: bool = False
    HostConfig: HostConfigSpec = Field(default_factory=HostConfigSpec)

    @field_validator("Env", "Cmd", mode="before")
    @classmethod
    def null_to_empty(cls, value):
        # Docker clients send null for unset lists
        return value or []

    @field_validator("HostConfig", mode="before")
    @classmethod
    def null_host_config(cls, value):
        return value or {}


class ContainerResult(BaseModel):
    """Container create response body."""
    Id: str
    Warnings: List[str] = Field(default_factory=list)


class WaitResult(BaseModel):
    StatusCode: int = 0

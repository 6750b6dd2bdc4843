"""Pydantic models for Atlas Admin API records."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional


class _AtlasRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Project(_AtlasRecord):
    """Atlas project (group)."""
    id: str
    name: str = ""


class Process(_AtlasRecord):
    """One mongod/mongos host:port endpoint of a cluster."""
    replica_set_name: str = Field(default="", alias="replicaSetName")
    hostname: str
    port: int
    type_name: str = Field(default="", alias="typeName")
    version: str = ""
    created: str = ""

    @property
    def is_primary(self) -> bool:
        return self.type_name == "REPLICA_PRIMARY"


class DataPoint(_AtlasRecord):
    """Timestamped observation; value is None when nothing was sampled."""
    timestamp: Optional[str] = None
    value: Optional[float] = None


class Measurement(_AtlasRecord):
    """Named metric series."""
    name: str
    units: Optional[str] = None
    data_points: List[DataPoint] = Field(default_factory=list, alias="dataPoints")

    @field_validator("data_points", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return [] if v is None else v


class ProcessDatabase(_AtlasRecord):
    database_name: str = Field(alias="databaseName")


class ProcessDisk(_AtlasRecord):
    partition_name: str = Field(alias="partitionName")

"""Pydantic configuration models for the Atlas exporter."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Tuple
import re

from ..utils.logger import LOG_LEVELS


# Fixed set of internal databases never reported per database
SKIP_DATABASES = ("local", "config", "test")

_ISO_DURATION = re.compile(r'^P(?!$)(\d+D)?(T(?=\d)(\d+H)?(\d+M)?(\d+S)?)?$')


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class AtlasConfig(_Frozen):
    """Atlas Admin API credentials and target project."""
    public_key: str = Field(min_length=1)
    private_key: str = Field(min_length=1)
    project_id: str = Field(min_length=1)
    base_url: str = "https://cloud.mongodb.com/api/atlas/v1.0"
    timeout_seconds: float = Field(default=30.0, gt=0)
    # Also require the configured project in the liveness probe listing
    verify_project: bool = False

    @field_validator('base_url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v.rstrip('/')


class WebConfig(_Frozen):
    """HTTP listener configuration."""
    listen_address: str = ":9139"
    scrape_path: str = "/scrape"
    telemetry_path: str = "/metrics"
    # Seconds taken off the scraper's timeout so a partial response still arrives
    timeout_offset: float = Field(default=0.5, ge=0)

    @field_validator('listen_address')
    @classmethod
    def validate_listen_address(cls, v: str) -> str:
        """Require [host]:port with a valid port."""
        host, sep, port = v.rpartition(':')
        if not sep or not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError('Listen address must look like [host]:port')
        return v

    @field_validator('scrape_path', 'telemetry_path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith('/') or v == '/':
            raise ValueError('Path must start with / and not be the root path')
        return v

    @model_validator(mode='after')
    def distinct_paths(self) -> 'WebConfig':
        if self.scrape_path == self.telemetry_path:
            raise ValueError('scrape_path and telemetry_path must differ')
        return self

    @property
    def host(self) -> str:
        host = self.listen_address.rpartition(':')[0]
        return host.strip('[]') or "0.0.0.0"

    @property
    def port(self) -> int:
        return int(self.listen_address.rpartition(':')[2])


class MeasurementWindow(_Frozen):
    """Granularity and lookback period sent with measurement queries."""
    granularity: str = "PT5M"
    period: str = "PT1H"

    @field_validator('granularity', 'period')
    @classmethod
    def validate_duration(cls, v: str) -> str:
        """Basic ISO-8601 duration validation."""
        if not _ISO_DURATION.match(v):
            raise ValueError(f'Not an ISO-8601 duration: {v}')
        return v


class CollectionConfig(_Frozen):
    """Measurement windows per stage and database skip-list."""
    process_window: MeasurementWindow = Field(default_factory=MeasurementWindow)
    database_window: MeasurementWindow = Field(default_factory=MeasurementWindow)
    disk_window: MeasurementWindow = Field(default_factory=MeasurementWindow)
    extra_skip_databases: List[str] = Field(default_factory=list)

    @property
    def skip_databases(self) -> Tuple[str, ...]:
        extra = [db for db in self.extra_skip_databases if db not in SKIP_DATABASES]
        return SKIP_DATABASES + tuple(extra)


class LoggingConfig(_Frozen):
    """Log verbosity."""
    level: str = "error"

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        if v.lower() not in LOG_LEVELS:
            raise ValueError(f'Log level must be one of: {", ".join(LOG_LEVELS)}')
        return v.lower()


class ExporterConfig(_Frozen):
    """Root configuration model for the exporter."""
    atlas: AtlasConfig
    web: WebConfig = Field(default_factory=WebConfig)
    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

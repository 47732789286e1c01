"""
Datapoint Schemas
=================

Pydantic models for the user-facing JSON configuration of a datapoint.

The shape of ``datasource`` depends on the sibling ``datasourcetype`` field;
the discriminator is copied into the datasource object before validation so
pydantic can select the matching variant.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from sensetif.domain.datapoints import (
    DatapointDescriptor,
    MqttDatasource,
    ProcessingDescriptor,
    Ttnv3Datasource,
    WebDatasource,
    assemble,
)
from sensetif.enums import (
    AuthenticationType,
    DocumentFormat,
    MqttProtocol,
    PollInterval,
    ScalingLaw,
    SourceType,
    TimestampType,
    TimeToLive,
)

# ============================================================================
# Processing
# ============================================================================


class ProcessingSettings(BaseModel):
    """Processing parameters of a datapoint"""

    unit: str = Field(default="", description="Engineering unit, any characters")
    scaling: ScalingLaw = Field(default=ScalingLaw.LIN, description="Scaling law")
    k: float = Field(default=0.0, description="Affine factor")
    m: float = Field(default=0.0, description="Affine offset")
    min: float = Field(default=0.0, description="Lower bound of the processed value")
    max: float = Field(default=0.0, description="Upper bound of the processed value")
    condition: str = Field(default="", description="Expression deciding whether a reading is kept")
    scalefunc: str = Field(default="", description="Expression applied after scaling")

    model_config = ConfigDict(extra="ignore")

    def to_domain(self) -> ProcessingDescriptor:
        return ProcessingDescriptor(**self.model_dump())


# ============================================================================
# Datasources
# ============================================================================


class WebDatasourceSettings(BaseModel):
    """Web document datasource"""

    kind: Literal["web"] = Field(default="web", exclude=True)
    url: str = Field(default="", max_length=2048)
    authentication_type: AuthenticationType = Field(default=AuthenticationType.NONE, alias="authenticationType")
    auth: str = Field(default="", description="user=password for basic, token for bearerToken")
    format: DocumentFormat = Field(default=DocumentFormat.JSON)
    value_expression: str = Field(default="", alias="valueExpression")
    timestamp_type: TimestampType = Field(default=TimestampType.POLL_TIME, alias="timestampType")
    timestamp_expression: str = Field(default="", alias="timestampExpression")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("auth", mode="before")
    def _coerce_auth(cls, v):
        """Accept the {"u": user, "p": password} form sent by older clients"""
        if isinstance(v, dict):
            return f"{v.get('u', '')}={v.get('p', '')}"
        if v is None:
            return ""
        return v

    @field_validator("url")
    def validate_url(cls, v):
        """Credentials belong in ``auth``, not in the URL"""
        if v and "@" in v.split("://", 1)[-1].split("/", 1)[0]:
            raise ValueError("URL must not contain user:password@")
        return v

    def to_domain(self) -> WebDatasource:
        return WebDatasource(**self.model_dump(exclude={"kind"}))


class Ttnv3DatasourceSettings(BaseModel):
    """The Things Network v3 datasource"""

    kind: Literal["ttnv3"] = Field(default="ttnv3", exclude=True)
    zone: str = ""
    application: str = ""
    device: str = ""
    point: str = Field(default="", validation_alias=AliasChoices("point", "pointname"))
    authorization_key: str = Field(
        default="", validation_alias=AliasChoices("authorizationkey", "authorizationKey", "authorization_key")
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_domain(self) -> Ttnv3Datasource:
        return Ttnv3Datasource(**self.model_dump(exclude={"kind"}))


class MqttDatasourceSettings(BaseModel):
    """MQTT broker datasource"""

    kind: Literal["mqtt"] = Field(default="mqtt", exclude=True)
    protocol: Optional[MqttProtocol] = None
    address: str = ""
    port: int = Field(default=1883, ge=0, le=65535)
    topic: str = ""
    username: str = ""
    password: str = ""
    format: DocumentFormat = Field(default=DocumentFormat.JSON, alias="doctype")
    value_expression: str = Field(default="", alias="dataexpr")
    timestamp_type: TimestampType = Field(default=TimestampType.POLL_TIME, alias="tstype")
    timestamp_expression: str = Field(default="", alias="tsexpr")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_domain(self) -> MqttDatasource:
        return MqttDatasource(**self.model_dump(exclude={"kind"}))


DatasourceSettings = Annotated[
    Union[WebDatasourceSettings, Ttnv3DatasourceSettings, MqttDatasourceSettings],
    Field(discriminator="kind"),
]


# ============================================================================
# Datapoint
# ============================================================================


class DatapointSettings(BaseModel):
    """Request model for creating or updating a datapoint"""

    project: str = Field(..., min_length=1, max_length=100)
    subsystem: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., pattern=r"^[a-z][A-Za-z0-9_.]*$", max_length=100)
    interval: PollInterval = Field(..., alias="pollinterval")
    proc: ProcessingSettings = Field(default_factory=ProcessingSettings)
    time_to_live: TimeToLive = Field(..., alias="timeToLive")
    source_type: SourceType = Field(..., alias="datasourcetype")
    datasource: DatasourceSettings

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "project": "greenhouse",
                "subsystem": "north",
                "name": "air.temperature",
                "pollinterval": "five_minutes",
                "proc": {"unit": "°C", "scaling": "fToC", "k": 1.0, "m": 0.0, "min": -40, "max": 60},
                "timeToLive": "c",
                "datasourcetype": "mqtt",
                "datasource": {
                    "protocol": "mqtts",
                    "address": "broker.example",
                    "port": 8883,
                    "topic": "sensors/1",
                    "doctype": "json",
                    "dataexpr": "$.temperature",
                    "tstype": "polltime",
                },
            }
        },
    )

    @model_validator(mode="before")
    @classmethod
    def _tag_datasource(cls, data: Any) -> Any:
        """Copy datasourcetype into the datasource so the union can discriminate"""
        if isinstance(data, dict):
            raw = data.get("datasource")
            source = data.get("datasourcetype", data.get("source_type"))
            if isinstance(raw, dict) and source is not None:
                data = {**data, "datasource": {**raw, "kind": getattr(source, "value", source)}}
        return data

    def to_descriptor(self) -> DatapointDescriptor:
        """Convert to the immutable domain descriptor (re-validated by ``assemble``)."""
        return assemble(
            project=self.project,
            subsystem=self.subsystem,
            name=self.name,
            interval=self.interval,
            proc=self.proc.to_domain(),
            time_to_live=self.time_to_live,
            source_type=self.source_type,
            datasource=self.datasource.to_domain(),
        )

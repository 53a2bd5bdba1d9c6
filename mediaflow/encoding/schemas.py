"""
Encoding workflow — Pydantic V2 schemas for trigger inputs, results and
Event Grid notifications.
"""
from __future__ import annotations

import posixpath
from datetime import datetime
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mediaflow.encoding.constants import EventType
from mediaflow.exceptions import InvalidEventPayload

if TYPE_CHECKING:
    import azure.functions as func


# ── Base ─────────────────────────────────────────────────────────────────────

class _Base(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )


# ── Ingest ───────────────────────────────────────────────────────────────────

class BlobUpload(_Base):
    """A blob that landed in the ingest container."""
    name: str = Field(min_length=1)
    content: bytes
    size: int = Field(ge=0)

    @property
    def file_name(self) -> str:
        return posixpath.basename(self.name.replace("\\", "/"))


class IngestNames(_Base):
    """Names derived from a single uniqueness token."""
    token: str
    job_name: str
    input_asset_name: str
    output_asset_name: str


class IngestResult(_Base):
    names: IngestNames
    output_asset_name: str = Field(
        description="Output asset actually created; differs from names.output_asset_name after a collision",
    )
    transform_name: str


# ── Event Grid ───────────────────────────────────────────────────────────────

class EventEnvelope(_Base):
    """Event Grid schema envelope as delivered to the function."""
    id: str
    topic: str | None = None
    subject: str | None = None
    event_type: str
    data: Any = None
    event_time: datetime | None = None
    data_version: str | None = None

    @classmethod
    def from_function_event(cls, event: func.EventGridEvent) -> EventEnvelope:
        return cls(
            id=event.id,
            topic=event.topic,
            subject=event.subject,
            event_type=event.event_type,
            data=event.get_json(),
            event_time=event.event_time,
            data_version=event.data_version,
        )


class JobOutput(_Base):
    odata_type: str | None = Field(default=None, alias="@odata.type")
    asset_name: str | None = Field(default=None, alias="assetName")
    state: str
    progress: int | None = None
    label: str | None = None
    error: dict[str, Any] | None = None


class JobOutputStateChangeData(_Base):
    output: JobOutput
    previous_state: str | None = Field(default=None, alias="previousState")
    correlation_data: dict[str, str] | None = Field(default=None, alias="jobCorrelationData")


class JobOutputStateChangeEvent(_Base):
    kind: Literal["job_output_state_change"] = "job_output_state_change"
    envelope: EventEnvelope
    data: JobOutputStateChangeData


class IgnoredEvent(_Base):
    """Any event type the workflow does not act on."""
    kind: Literal["ignored"] = "ignored"
    envelope: EventEnvelope


NotificationEvent = Annotated[
    Union[JobOutputStateChangeEvent, IgnoredEvent],
    Field(discriminator="kind"),
]


def parse_notification(envelope: EventEnvelope) -> NotificationEvent:
    """Map an envelope onto the typed event the workflow understands."""
    if envelope.event_type != EventType.JOB_OUTPUT_STATE_CHANGE.value:
        return IgnoredEvent(envelope=envelope)

    try:
        data = JobOutputStateChangeData.model_validate(envelope.data)
    except ValidationError as exc:
        raise InvalidEventPayload(envelope.event_type, str(exc)) from exc
    return JobOutputStateChangeEvent(envelope=envelope, data=data)

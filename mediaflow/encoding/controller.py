"""
Encoding workflow — controller layer.

Receives trigger input from the function app, authenticates the shared
client and hands off to the service functions.
"""
from __future__ import annotations

import logging

from mediaflow.encoding import service
from mediaflow.encoding.schemas import (
    BlobUpload,
    EventEnvelope,
    IngestResult,
    parse_notification,
)
from mediaflow.media_client import MediaServiceClient, get_media_client

logger = logging.getLogger(__name__)


async def ingest(
    name: str,
    content: bytes,
    size: int | None = None,
    client: MediaServiceClient | None = None,
) -> IngestResult:
    """Encode a blob that arrived in the ingest container."""
    size = len(content) if size is None else size
    logger.info("Blob Trigger - Received Blob '%s', Size: %d bytes", name, size)

    client = client or get_media_client()
    await client.login()

    upload = BlobUpload(name=name, content=content, size=size)
    return await service.ingest_blob(client, upload)


async def monitor(
    envelope: EventEnvelope,
    client: MediaServiceClient | None = None,
) -> str | None:
    """React to an Event Grid notification from Media Services."""
    logger.info(
        "EventGridEvent\n\tId: %s\n\tTopic: %s\n\tSubject: %s\n\tType: %s\n\tData: %s",
        envelope.id,
        envelope.topic,
        envelope.subject,
        envelope.event_type,
        envelope.data,
    )

    client = client or get_media_client()
    await client.login()

    event = parse_notification(envelope)
    return await service.handle_notification(client, event)

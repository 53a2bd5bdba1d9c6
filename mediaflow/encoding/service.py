"""
Encoding workflow — sequencing logic for ingest and completion.

No trigger or SDK imports: the media client is passed in, so every step can
be exercised with a fake.

Ingest:      blob -> input asset + upload -> output asset -> transform -> job
Completion:  JobOutputStateChange(Finished) -> streaming locator
"""
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from mediaflow.encoding.constants import (
    INPUT_ASSET_PREFIX,
    JOB_PREFIX,
    OUTPUT_ASSET_PREFIX,
    STREAMING_POLICY_NAME,
    TRANSFORM_NAME,
    UNIQUENESS_TOKEN_LENGTH,
    JobState,
)
from mediaflow.encoding.schemas import (
    BlobUpload,
    IgnoredEvent,
    IngestNames,
    IngestResult,
    NotificationEvent,
)

if TYPE_CHECKING:
    from mediaflow.media_client import MediaServiceClient

logger = logging.getLogger(__name__)


# ── Naming ───────────────────────────────────────────────────────────────────

def new_uniqueness_token() -> str:
    return str(uuid.uuid4())[:UNIQUENESS_TOKEN_LENGTH].replace("-", "")


def derive_names(token: str) -> IngestNames:
    """Build job and asset names that all share the same token."""
    return IngestNames(
        token=token,
        job_name=JOB_PREFIX + token,
        input_asset_name=INPUT_ASSET_PREFIX + token,
        output_asset_name=OUTPUT_ASSET_PREFIX + token,
    )


def collision_free_name(file_name: str) -> str:
    """Replacement output asset name when the derived one is already taken."""
    return f"{file_name}-{uuid.uuid4()}".lower()


# ── Ingest ───────────────────────────────────────────────────────────────────

async def ingest_blob(client: MediaServiceClient, upload: BlobUpload) -> IngestResult:
    """
    Create the assets for a new blob and submit its encoding job.

    Any failure propagates to the trigger. Assets created by this call are
    deleted first so a failed upload does not leave an orphaned input asset.
    """
    names = derive_names(new_uniqueness_token())
    logger.info(
        "Derived names for '%s': job=%s input=%s output=%s",
        upload.name,
        names.job_name,
        names.input_asset_name,
        names.output_asset_name,
    )

    # 1. Input asset + upload
    await client.create_asset(names.input_asset_name, f"Import - {upload.file_name}")
    created = [names.input_asset_name]

    try:
        container_url = await client.get_upload_container_url(names.input_asset_name)
        await client.upload_content(container_url, upload.file_name, upload.content)

        # 2. Output asset, renamed if the derived name is taken
        output_asset_name = names.output_asset_name
        if await client.get_asset(output_asset_name) is not None:
            output_asset_name = collision_free_name(upload.name)
            logger.info(
                "Output asset '%s' already exists, using '%s'",
                names.output_asset_name,
                output_asset_name,
            )
        await client.create_asset(output_asset_name)
        created.append(output_asset_name)

        # 3. Encoding pipeline + job
        transform = await client.get_or_create_transform(TRANSFORM_NAME)
        transform_name = transform.name or TRANSFORM_NAME
        await client.submit_job(
            transform_name,
            names.job_name,
            names.input_asset_name,
            [output_asset_name],
        )
    except Exception:
        logger.exception("Ingest of '%s' failed, removing assets %s", upload.name, created)
        for asset_name in reversed(created):
            try:
                await client.delete_asset(asset_name)
            except Exception:
                logger.exception("Failed to remove asset '%s'", asset_name)
        raise

    logger.info("Ingest of '%s' submitted as job '%s'", upload.name, names.job_name)
    return IngestResult(
        names=names,
        output_asset_name=output_asset_name,
        transform_name=transform_name,
    )


# ── Completion ───────────────────────────────────────────────────────────────

async def handle_notification(
    client: MediaServiceClient,
    event: NotificationEvent,
) -> str | None:
    """Publish the output asset of a finished job; ignore everything else.

    Returns the streaming locator name when one was created.
    """
    if isinstance(event, IgnoredEvent):
        logger.info("Ignoring event type %s", event.envelope.event_type)
        return None

    output = event.data.output
    logger.info(
        "Detected JobOutputStateChange event: asset=%s state=%s (previous %s)",
        output.asset_name,
        output.state,
        event.data.previous_state,
    )

    # Only the last state of the job output triggers publishing
    if output.state != JobState.FINISHED.value:
        return None
    if not output.asset_name:
        logger.warning("Finished job output on %s carries no asset name", event.envelope.subject)
        return None

    logger.info("Publishing asset '%s'", output.asset_name)
    locator_name = await client.publish_asset(output.asset_name, STREAMING_POLICY_NAME)
    if locator_name is None:
        logger.warning(
            "Asset '%s' was not published (%d publish failures so far)",
            output.asset_name,
            client.publish_failures,
        )
    return locator_name

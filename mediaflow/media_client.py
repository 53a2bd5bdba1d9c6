"""
Azure Media Services — async façade over the management and storage SDKs.

Covers what the encoding workflow needs and nothing more:
  login            service principal token + AzureMediaServices client
  assets           create / get / delete / read-write SAS for upload
  transforms       idempotent get-or-create of the encoding pipeline
  jobs             submission (never polled; completion arrives via Event Grid)
  locators         publishing an output asset for streaming

Publishing is best-effort: failures are logged and counted, never raised.
"""
from __future__ import annotations

import asyncio
import logging
import posixpath
import threading
import uuid
from datetime import datetime, timedelta, timezone
from urllib.parse import urlsplit, urlunsplit

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
)
from azure.identity.aio import ClientSecretCredential
from azure.mgmt.media.aio import AzureMediaServices
from azure.mgmt.media.models import (
    Asset,
    AssetContainerPermission,
    BuiltInStandardEncoderPreset,
    EncoderNamedPreset,
    Job,
    JobInputAsset,
    JobOutputAsset,
    ListContainerSasInput,
    StreamingLocator,
    Transform,
    TransformOutput,
)
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import ContainerClient

from mediaflow.config import MediaServiceSettings, get_settings
from mediaflow.encoding.constants import (
    STREAMING_LOCATOR_PREFIX,
    UPLOAD_CONTENT_TYPE,
    UPLOAD_SAS_EXPIRY,
)
from mediaflow.exceptions import (
    MediaServiceAuthError,
    MediaServiceNotConfigured,
    MediaServiceNotLoggedIn,
    UploadContainerUnavailable,
)

logger = logging.getLogger(__name__)


def _redact_sas(url: str) -> str:
    """Drop the query string (the SAS token) from a container URL."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


class MediaServiceClient:
    """Provides the Media Services operations used by the workflow.

    An existing ``AzureMediaServices`` instance may be passed in, in which
    case :meth:`login` leaves it untouched.
    """

    def __init__(
        self,
        settings: MediaServiceSettings,
        client: AzureMediaServices | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._credential: ClientSecretCredential | None = None
        self._login_lock = asyncio.Lock()
        self.publish_failures = 0

    @property
    def is_logged_in(self) -> bool:
        return self._client is not None

    def _require_client(self) -> AzureMediaServices:
        if self._client is None:
            raise MediaServiceNotLoggedIn()
        return self._client

    # ── Session ─────────────────────────────────────────────────────────────

    async def login(self) -> None:
        """Authenticate once; later calls reuse the same client."""
        if self._client is not None:
            return

        async with self._login_lock:
            if self._client is not None:
                return

            settings = self._settings
            missing = settings.missing_fields()
            if missing:
                raise MediaServiceNotConfigured(missing)

            credential = ClientSecretCredential(
                settings.aad_tenant_id,
                settings.aad_client_id,
                settings.aad_secret,
                authority=settings.aad_endpoint,
            )
            try:
                # Fetch a token up front so bad credentials fail here
                await credential.get_token(settings.arm_scope)
            except ClientAuthenticationError as exc:
                await credential.close()
                raise MediaServiceAuthError(exc.message or str(exc)) from exc
            except BaseException:
                await credential.close()
                raise

            self._credential = credential
            self._client = AzureMediaServices(
                credential,
                settings.subscription_id,
                base_url=settings.arm_endpoint,
                credential_scopes=[settings.arm_scope],
            )
            logger.info(
                "Logged in to Media Services account %s/%s",
                settings.resource_group,
                settings.account_name,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
        if self._credential is not None:
            await self._credential.close()
            self._credential = None

    # ── Assets ──────────────────────────────────────────────────────────────

    async def create_asset(self, name: str, description: str | None = None) -> Asset:
        client = self._require_client()
        logger.info("Creating asset '%s'", name)
        return await client.assets.create_or_update(
            self._settings.resource_group,
            self._settings.account_name,
            name,
            parameters=Asset(description=description),
        )

    async def get_asset(self, name: str) -> Asset | None:
        """Return the asset, or None when no asset has that name."""
        client = self._require_client()
        try:
            return await client.assets.get(
                self._settings.resource_group,
                self._settings.account_name,
                name,
            )
        except ResourceNotFoundError:
            return None

    async def delete_asset(self, name: str) -> bool:
        """Delete an asset. Best-effort — logs on failure but never raises."""
        client = self._require_client()
        try:
            await client.assets.delete(
                self._settings.resource_group,
                self._settings.account_name,
                name,
            )
        except AzureError as exc:
            logger.error("Deleting asset '%s' failed: %s", name, exc.message)
            return False
        logger.info("Deleted asset '%s'", name)
        return True

    async def get_upload_container_url(
        self,
        asset_name: str,
        expiry: timedelta = UPLOAD_SAS_EXPIRY,
    ) -> str:
        """Return a read/write SAS URL for the asset's storage container."""
        client = self._require_client()
        response = await client.assets.list_container_sas(
            self._settings.resource_group,
            self._settings.account_name,
            asset_name,
            parameters=ListContainerSasInput(
                permissions=AssetContainerPermission.READ_WRITE,
                expiry_time=datetime.now(timezone.utc) + expiry,
            ),
        )
        urls = response.asset_container_sas_urls or []
        if not urls:
            raise UploadContainerUnavailable(asset_name)
        return urls[0]

    async def upload_content(self, container_url: str, file_name: str, content: bytes) -> None:
        """Upload video bytes into the container behind a SAS URL."""
        blob_name = posixpath.basename(file_name.replace("\\", "/"))
        logger.info(
            "Uploading file '%s' (%d bytes) to container %s",
            blob_name,
            len(content),
            _redact_sas(container_url),
        )
        async with ContainerClient.from_container_url(container_url) as container:
            await container.upload_blob(
                name=blob_name,
                data=content,
                overwrite=True,
                content_settings=ContentSettings(content_type=UPLOAD_CONTENT_TYPE),
            )

    # ── Transforms / jobs ───────────────────────────────────────────────────

    async def get_or_create_transform(self, name: str) -> Transform:
        client = self._require_client()
        try:
            return await client.transforms.get(
                self._settings.resource_group,
                self._settings.account_name,
                name,
            )
        except ResourceNotFoundError:
            pass

        logger.info("Transform '%s' not found, creating it", name)
        outputs = [
            TransformOutput(
                preset=BuiltInStandardEncoderPreset(
                    preset_name=EncoderNamedPreset.ADAPTIVE_STREAMING,
                ),
            ),
        ]
        return await client.transforms.create_or_update(
            self._settings.resource_group,
            self._settings.account_name,
            name,
            parameters=Transform(outputs=outputs),
        )

    async def submit_job(
        self,
        transform_name: str,
        job_name: str,
        input_asset_name: str,
        output_asset_names: list[str],
    ) -> Job:
        """Submit an encoding job. The job name is assumed to be unused."""
        client = self._require_client()
        job = Job(
            input=JobInputAsset(asset_name=input_asset_name),
            outputs=[JobOutputAsset(asset_name=name) for name in output_asset_names],
        )
        created = await client.jobs.create(
            self._settings.resource_group,
            self._settings.account_name,
            transform_name,
            job_name,
            parameters=job,
        )
        logger.info(
            "Submitted job '%s' on transform '%s': %s -> %s",
            job_name,
            transform_name,
            input_asset_name,
            ", ".join(output_asset_names),
        )
        return created

    # ── Publishing ──────────────────────────────────────────────────────────

    async def publish_asset(self, asset_name: str, streaming_policy_name: str) -> str | None:
        """Create a streaming locator for an asset.

        Returns the locator name, or None when publishing failed. Failures
        are logged and counted in ``publish_failures``; they never raise.
        """
        locator_id = uuid.uuid4()
        locator_name = f"{STREAMING_LOCATOR_PREFIX}{locator_id}"

        try:
            client = self._require_client()
            rg = self._settings.resource_group
            account = self._settings.account_name

            await client.assets.get(rg, account, asset_name)
            await client.streaming_policies.get(rg, account, streaming_policy_name)

            locator = StreamingLocator(
                asset_name=asset_name,
                streaming_policy_name=streaming_policy_name,
                alternative_media_id=str(locator_id),
                streaming_locator_id=str(locator_id),
            )
            await client.streaming_locators.create(rg, account, locator_name, parameters=locator)
        except HttpResponseError as exc:
            code = exc.error.code if exc.error is not None else exc.status_code
            logger.error("API error %s occurred while publishing '%s': %s", code, asset_name, exc.message)
            self.publish_failures += 1
            return None
        except Exception as exc:
            logger.error("An exception occurred while publishing '%s': %s", asset_name, exc)
            self.publish_failures += 1
            return None

        logger.info("Created '%s' with Id '%s'", locator_name, locator_id)
        return locator_name


# ── Process-wide instance ────────────────────────────────────────────────────

_client: MediaServiceClient | None = None
_client_lock = threading.Lock()


def get_media_client(settings: MediaServiceSettings | None = None) -> MediaServiceClient:
    """Return the façade shared by all invocations in this process."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = MediaServiceClient(settings or get_settings())
    return _client


def reset_media_client() -> None:
    global _client
    with _client_lock:
        _client = None

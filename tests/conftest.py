from __future__ import annotations

from collections.abc import Generator
from datetime import timedelta
from types import SimpleNamespace
from typing import Any

import pytest

from mediaflow.config import MediaServiceSettings, reset_settings
from mediaflow.media_client import reset_media_client


class FakeMediaClient:
    """In-memory stand-in for MediaServiceClient that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.assets: dict[str, str | None] = {}
        self.transforms: dict[str, SimpleNamespace] = {}
        self.uploads: dict[str, bytes] = {}
        self.failures: dict[str, Exception] = {}
        self.publish_result: str | None = "streaminglocator-fake"
        self.publish_failures = 0

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    @property
    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def calls_to(self, name: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == name]

    async def login(self) -> None:
        self._record("login")

    async def create_asset(self, name: str, description: str | None = None) -> SimpleNamespace:
        self._record("create_asset", name, description)
        self.assets[name] = description
        return SimpleNamespace(name=name, description=description)

    async def get_asset(self, name: str) -> SimpleNamespace | None:
        self._record("get_asset", name)
        if name not in self.assets:
            return None
        return SimpleNamespace(name=name, description=self.assets[name])

    async def delete_asset(self, name: str) -> bool:
        self._record("delete_asset", name)
        self.assets.pop(name, None)
        return True

    async def get_upload_container_url(
        self, asset_name: str, expiry: timedelta = timedelta(hours=1),
    ) -> str:
        self._record("get_upload_container_url", asset_name)
        return f"https://store.blob.core.windows.net/asset-{asset_name}?sig=secret"

    async def upload_content(self, container_url: str, file_name: str, content: bytes) -> None:
        self._record("upload_content", container_url, file_name, len(content))
        self.uploads[file_name] = content

    async def get_or_create_transform(self, name: str) -> SimpleNamespace:
        self._record("get_or_create_transform", name)
        if name not in self.transforms:
            self.transforms[name] = SimpleNamespace(name=name)
        return self.transforms[name]

    async def submit_job(
        self,
        transform_name: str,
        job_name: str,
        input_asset_name: str,
        output_asset_names: list[str],
    ) -> SimpleNamespace:
        self._record("submit_job", transform_name, job_name, input_asset_name, list(output_asset_names))
        return SimpleNamespace(name=job_name)

    async def publish_asset(self, asset_name: str, streaming_policy_name: str) -> str | None:
        self._record("publish_asset", asset_name, streaming_policy_name)
        if self.publish_result is None:
            self.publish_failures += 1
        return self.publish_result


@pytest.fixture
def fake_client() -> FakeMediaClient:
    return FakeMediaClient()


@pytest.fixture
def settings() -> MediaServiceSettings:
    return MediaServiceSettings(
        aad_tenant_id="tenant",
        aad_client_id="client",
        aad_secret="secret",
        subscription_id="sub",
        resource_group="rg",
        account_name="amsaccount",
        _env_file=None,
    )


@pytest.fixture(autouse=True)
def _reset_process_caches() -> Generator[None, None, None]:
    reset_settings()
    reset_media_client()
    yield
    reset_settings()
    reset_media_client()

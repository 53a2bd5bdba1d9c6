import pytest

from mediaflow.encoding import controller, service
from mediaflow.encoding.constants import STREAMING_POLICY_NAME, JobState
from mediaflow.encoding.schemas import EventEnvelope, parse_notification
from mediaflow.exceptions import InvalidEventPayload


def _envelope(event_type: str = "Microsoft.Media.JobOutputStateChange", **output) -> EventEnvelope:
    return EventEnvelope(
        id="e1",
        topic="/subscriptions/sub/resourceGroups/rg/providers/Microsoft.Media/mediaservices/amsaccount",
        subject="transforms/Content Adaptive Multiple Bitrate MP4/jobs/job-abc123",
        event_type=event_type,
        data={"previousState": "Processing", "output": output},
    )


@pytest.mark.asyncio
async def test_finished_output_is_published(fake_client) -> None:
    envelope = _envelope(state="Finished", assetName="output-abc123")

    locator = await controller.monitor(envelope, client=fake_client)

    assert locator == "streaminglocator-fake"
    assert fake_client.calls == [
        ("login",),
        ("publish_asset", "output-abc123", STREAMING_POLICY_NAME),
    ]


@pytest.mark.asyncio
async def test_processing_state_only_logs_in(fake_client) -> None:
    envelope = _envelope(state="Processing", assetName="output-abc123")

    assert await controller.monitor(envelope, client=fake_client) is None
    assert fake_client.calls == [("login",)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "state",
    [s.value for s in JobState if s is not JobState.FINISHED] + ["finished", "Finished "],
)
async def test_other_states_are_ignored(fake_client, state) -> None:
    event = parse_notification(_envelope(state=state, assetName="output-abc123"))
    assert await service.handle_notification(fake_client, event) is None
    assert fake_client.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "event_type",
    ["Microsoft.Media.JobStateChange", "Microsoft.Storage.BlobCreated", "microsoft.media.joboutputstatechange"],
)
async def test_other_event_types_only_log_in(fake_client, event_type) -> None:
    envelope = _envelope(event_type=event_type, state="Finished", assetName="output-abc123")

    assert await controller.monitor(envelope, client=fake_client) is None
    assert fake_client.calls == [("login",)]


@pytest.mark.asyncio
async def test_finished_without_asset_name_is_not_published(fake_client) -> None:
    event = parse_notification(_envelope(state="Finished"))
    assert await service.handle_notification(fake_client, event) is None
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_publish_failure_completes_normally(fake_client) -> None:
    fake_client.publish_result = None
    envelope = _envelope(state="Finished", assetName="output-abc123")

    assert await controller.monitor(envelope, client=fake_client) is None
    assert fake_client.publish_failures == 1


@pytest.mark.asyncio
async def test_malformed_payload_raises_after_login(fake_client) -> None:
    envelope = EventEnvelope(id="e2", event_type="Microsoft.Media.JobOutputStateChange", data={"foo": 1})

    with pytest.raises(InvalidEventPayload):
        await controller.monitor(envelope, client=fake_client)
    assert fake_client.calls == [("login",)]

"""
Encoding workflow — static constants and enum types.
"""
import enum
from datetime import timedelta

# Pipeline definition shared by every ingest
TRANSFORM_NAME = "Content Adaptive Multiple Bitrate MP4"

# Streaming policy applied to published output assets
STREAMING_POLICY_NAME = "Predefined_ClearStreamingOnly"

# Name prefixes; every ingest appends the same uniqueness token to each
JOB_PREFIX = "job-"
INPUT_ASSET_PREFIX = "input-"
OUTPUT_ASSET_PREFIX = "output-"
STREAMING_LOCATOR_PREFIX = "streaminglocator-"

UNIQUENESS_TOKEN_LENGTH = 10  # characters of a uuid4 string, hyphen dropped

UPLOAD_SAS_EXPIRY = timedelta(hours=1)
UPLOAD_CONTENT_TYPE = "video/mp4"


class EventType(str, enum.Enum):
    """Event Grid event types the workflow acts on."""
    JOB_OUTPUT_STATE_CHANGE = "Microsoft.Media.JobOutputStateChange"


class JobState(str, enum.Enum):
    """Job output states reported by Media Services; only FINISHED publishes."""
    CANCELED = "Canceled"
    CANCELING = "Canceling"
    ERROR = "Error"
    FINISHED = "Finished"
    PROCESSING = "Processing"
    QUEUED = "Queued"
    SCHEDULED = "Scheduled"

"""
Media workflow — domain-specific exceptions.

Each exception presets its own message so that callers never need to
compose one at the raise site.  Errors from the Azure SDKs are not wrapped
here unless the workflow gives them a meaning of their own.
"""


class MediaServiceError(Exception):
    """Base class for all workflow errors."""


# ── Client / session ────────────────────────────────────────────────────────

class MediaServiceNotConfigured(MediaServiceError):
    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Media Services settings are incomplete, missing: {', '.join(missing)}."
        )


class MediaServiceAuthError(MediaServiceError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Could not authenticate against Media Services: {reason}")


class MediaServiceNotLoggedIn(MediaServiceError):
    def __init__(self) -> None:
        super().__init__("Media Services client used before login().")


# ── Assets ──────────────────────────────────────────────────────────────────

class UploadContainerUnavailable(MediaServiceError):
    def __init__(self, asset_name: str) -> None:
        self.asset_name = asset_name
        super().__init__(f"No upload container URL was returned for asset '{asset_name}'.")


# ── Events ──────────────────────────────────────────────────────────────────

class InvalidEventPayload(MediaServiceError):
    def __init__(self, event_type: str, reason: str) -> None:
        self.event_type = event_type
        self.reason = reason
        super().__init__(f"Malformed payload for event type {event_type}: {reason}")

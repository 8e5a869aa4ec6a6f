"""Per-tracker request policy and Authorization header rules."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TrackerProfile:
    request_limit: int | None
    token_auth: bool = False


_TRACKER_PROFILES: dict[str, TrackerProfile] = {
    "red": TrackerProfile(request_limit=10, token_auth=False),
    "ops": TrackerProfile(request_limit=5, token_auth=True),
}


def _normalize_tracker_name(tracker_name: str | None) -> str:
    return (tracker_name or "").strip().lower()


def resolve_tracker_profile(tracker_name: str | None) -> TrackerProfile:
    normalized = _normalize_tracker_name(tracker_name)
    profile = _TRACKER_PROFILES.get(normalized)
    if profile is not None:
        return profile
    supported = ", ".join(name.upper() for name in sorted(_TRACKER_PROFILES))
    raise ValueError(
        f"Unsupported tracker '{tracker_name}'. Supported trackers: {supported}."
    )


def build_auth_header(tracker_name: str, api_key: str) -> str:
    """
    Return the Authorization header value for a tracker.

    RED takes the bare key; OPS expects a `token ` prefix.
    """
    key = (api_key or "").strip()
    if resolve_tracker_profile(tracker_name).token_auth:
        return key if key.lower().startswith("token ") else f"token {key}"
    return key

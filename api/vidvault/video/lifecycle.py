"""Allowed video status transitions."""

from vidvault.models.video import VideoStatus

# UPLOADED -> PENDING -> PROCESSING -> {COMPLETED, FAILED}; FAILED may be retried
TRANSITIONS: dict[VideoStatus, frozenset[VideoStatus]] = {
    VideoStatus.UPLOADED: frozenset({VideoStatus.PENDING}),
    VideoStatus.PENDING: frozenset({VideoStatus.PROCESSING}),
    VideoStatus.PROCESSING: frozenset({VideoStatus.COMPLETED, VideoStatus.FAILED}),
    VideoStatus.COMPLETED: frozenset(),
    VideoStatus.FAILED: frozenset({VideoStatus.PENDING}),
}


def can_transition(current: VideoStatus, target: VideoStatus) -> bool:
    """Staying in the current status is always allowed."""
    return current == target or target in TRANSITIONS[current]

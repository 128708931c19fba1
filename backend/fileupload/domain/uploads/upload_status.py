"""UploadStatus state machine for a single upload request

State flow:
RECEIVING → VALIDATING → ACCEPTED or REJECTED
"""

from enum import Enum
from typing import Optional, Dict, List


class UploadStatus(str, Enum):
    """Upload request status enum"""
    RECEIVING = "RECEIVING"    # Bytes are being staged
    VALIDATING = "VALIDATING"  # Name, type and size checks in progress
    ACCEPTED = "ACCEPTED"      # Stored under the upload directory (terminal)
    REJECTED = "REJECTED"      # Refused, nothing stored (terminal)


# State transition rules
ALLOWED_TRANSITIONS: Dict[Optional[UploadStatus], List[UploadStatus]] = {
    None: [UploadStatus.RECEIVING],
    UploadStatus.RECEIVING: [UploadStatus.VALIDATING, UploadStatus.REJECTED],
    UploadStatus.VALIDATING: [UploadStatus.ACCEPTED, UploadStatus.REJECTED],
    UploadStatus.ACCEPTED: [],
    UploadStatus.REJECTED: [],
}


def can_transition(from_status: Optional[UploadStatus], to_status: UploadStatus) -> bool:
    """Validate if status transition is allowed

    Args:
        from_status: Current status (None for a new request)
        to_status: Target status

    Returns:
        True if transition is allowed, False otherwise

    Example:
        >>> can_transition(UploadStatus.VALIDATING, UploadStatus.ACCEPTED)
        True
        >>> can_transition(UploadStatus.REJECTED, UploadStatus.VALIDATING)
        False
    """
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def is_terminal_state(status: UploadStatus) -> bool:
    """Check if status is terminal (no further transitions)"""
    return len(ALLOWED_TRANSITIONS.get(status, [])) == 0


class UploadLifecycle:
    """Tracks the status of one upload and enforces the transition rules."""

    def __init__(self) -> None:
        self.status: Optional[UploadStatus] = None
        self.history: List[UploadStatus] = []

    def advance(self, to_status: UploadStatus) -> None:
        """Move to to_status.

        Raises:
            ValueError: If the transition is not allowed
        """
        if not can_transition(self.status, to_status):
            current = self.status.value if self.status else None
            raise ValueError(
                f"Invalid upload status transition: {current} → {to_status.value}"
            )
        self.status = to_status
        self.history.append(to_status)

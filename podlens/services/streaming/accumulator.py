"""Base64 log frame decoding and accumulation."""

import base64
import binascii

import structlog

logger = structlog.get_logger(__name__)


def decode_frame(frame: str | bytes) -> str:
    """Decode one base64 log frame to text.

    Accepts the standard and URL-safe alphabets and tolerates missing
    padding.

    Raises:
        ValueError: If the frame is not valid base64.
    """
    if isinstance(frame, bytes):
        frame = frame.decode("ascii", errors="replace")
    data = frame.strip().replace("-", "+").replace("_", "/")
    data += "=" * (-len(data) % 4)
    try:
        raw = base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 log frame: {e}") from e
    return raw.decode("utf-8", errors="replace")


class LogAccumulator:
    """Append-only buffer of decoded log frames.

    The buffer grows for the life of the session; bounding what is displayed
    is left to consumers.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> list[str]:
        """Copy of the accumulated lines in arrival order."""
        return list(self._lines)

    def reset(self) -> None:
        self._lines = []

    def decode(self, frame: str | bytes | None) -> str | None:
        """Decode and append a frame.

        Returns:
            The decoded text, or None if the frame was empty or undecodable
            and nothing was appended.
        """
        if not frame:
            return None
        try:
            text = decode_frame(frame)
        except ValueError as e:
            logger.warning("Dropping undecodable log frame", error=str(e), frame_size=len(frame))
            return None
        self._lines.append(text)
        return text

"""File selection checks and inline previews for uploads.

Files are checked against a size ceiling and a MIME policy before any
upload is attempted. Accepted images are decoded into a data URL for
immediate display; that preview is never the persisted value, the
uploaded object's public URL is.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass

from tradepulse.api.middleware.error_handler import ValidationError
from tradepulse.schemas.form import FilePreview

logger = logging.getLogger(__name__)


def format_bytes(size: int, decimals: int = 2) -> str:
    """Render a byte count for humans, e.g. ``2097152`` -> ``"2 MB"``."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, max(decimals, 0)):g} {units[index]}"


@dataclass(frozen=True)
class SelectedFile:
    """A file picked by the user, held in memory until submission."""

    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        if "." in self.name:
            return self.name.rsplit(".", 1)[-1].lower()
        return self.content_type.split("/")[-1].lower()

    def __repr__(self) -> str:
        return f"SelectedFile(name={self.name!r}, content_type={self.content_type!r}, size={self.size})"


class FileRejectedError(ValidationError):
    """The selected file violates the size or type policy."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(
            message=message,
            details=[{"loc": [field], "msg": message, "type": "file_rejected"}],
        )
        self.field = field


@dataclass(frozen=True)
class FilePolicy:
    """Size ceiling and MIME allow-list for one kind of upload.

    ``allowed_types`` is an exact allow-list; ``allowed_prefix`` accepts a
    whole family such as ``image/``. At least one must be set.
    """

    max_bytes: int
    allowed_types: frozenset[str] = frozenset()
    allowed_prefix: str | None = None
    type_message: str = "Unsupported file type."

    def accepts_type(self, content_type: str) -> bool:
        content_type = (content_type or "").lower()
        if content_type in self.allowed_types:
            return True
        return bool(self.allowed_prefix) and content_type.startswith(self.allowed_prefix)

    def check(self, file: SelectedFile, field: str) -> None:
        """Raise FileRejectedError if the file may not be uploaded."""
        if file.size > self.max_bytes:
            raise FileRejectedError(field, f"Max file size is {format_bytes(self.max_bytes)}.")
        if not self.accepts_type(file.content_type):
            raise FileRejectedError(field, self.type_message)


def _encode_data_url(file: SelectedFile) -> str:
    encoded = base64.b64encode(file.data).decode("ascii")
    return f"data:{file.content_type};base64,{encoded}"


async def build_preview(file: SelectedFile) -> FilePreview:
    """Decode an accepted file into its preview.

    Images get an inline data URL; other accepted types (PDF) carry
    metadata only. Encoding runs in a worker thread.
    """
    payload = None
    if file.content_type.startswith("image/"):
        payload = await asyncio.to_thread(_encode_data_url, file)
    return FilePreview(
        name=file.name,
        mime_type=file.content_type,
        size_bytes=file.size,
        preview_payload=payload,
    )


class PreviewSlot:
    """Pending file selection for one upload field, plus what to display.

    ``persisted_url`` is the value already stored (e.g. the current
    avatar). ``displayed`` is the accepted preview when there is one,
    otherwise the persisted value.
    """

    def __init__(self, field: str, policy: FilePolicy, persisted_url: str | None = None) -> None:
        self.field = field
        self.policy = policy
        self.persisted_url = persisted_url
        self.pending: SelectedFile | None = None
        self.preview: FilePreview | None = None
        self._selection = 0

    @property
    def displayed(self) -> str | None:
        if self.preview is not None and self.preview.preview_payload:
            return self.preview.preview_payload
        return self.persisted_url

    async def select(self, file: SelectedFile) -> FilePreview:
        """Check and preview a newly selected file.

        A rejected file clears any pending selection, leaves the persisted
        value on display and raises FileRejectedError.
        """
        try:
            self.policy.check(file, self.field)
        except FileRejectedError:
            logger.info("Rejected %r for %s", file, self.field)
            self.clear()
            raise

        self._selection += 1
        selection = self._selection
        preview = await build_preview(file)
        # a newer selection or a clear() won the race
        if selection == self._selection:
            self.pending = file
            self.preview = preview
        return preview

    def clear(self) -> None:
        """Drop the pending selection and its preview."""
        self._selection += 1
        self.pending = None
        self.preview = None

    def commit(self, persisted_url: str | None) -> None:
        """Record the newly persisted value after a successful submission."""
        self.persisted_url = persisted_url
        self.clear()

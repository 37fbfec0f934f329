"""Unit tests for file checks and previews."""

import asyncio
import base64

import pytest

from tradepulse.forms.definitions import attachment_policy, avatar_policy
from tradepulse.forms.preview import (
    FileRejectedError,
    PreviewSlot,
    SelectedFile,
    build_preview,
    format_bytes,
)

MB = 1024 * 1024


def image(size: int = 500 * 1024, name: str = "avatar.png", content_type: str = "image/png") -> SelectedFile:
    return SelectedFile(name=name, content_type=content_type, data=b"\x89" * size)


class TestFormatBytes:
    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0 Bytes"),
            (512, "512 Bytes"),
            (1536, "1.5 KB"),
            (2 * MB, "2 MB"),
            (4 * MB, "4 MB"),
        ],
    )
    def test_format(self, size: int, expected: str) -> None:
        assert format_bytes(size) == expected


class TestSelectedFile:
    def test_extension_from_name(self) -> None:
        assert image(name="Photo.JPEG").extension == "jpeg"

    def test_extension_falls_back_to_mime(self) -> None:
        assert image(name="photo", content_type="image/webp").extension == "webp"

    def test_repr_hides_content(self) -> None:
        assert "\\x89" not in repr(image(size=10))


class TestPolicies:
    def test_avatar_accepts_any_image(self) -> None:
        avatar_policy().check(image(content_type="image/gif", name="a.gif"), "avatar_file")

    def test_avatar_rejects_oversized_file(self) -> None:
        with pytest.raises(FileRejectedError) as exc_info:
            avatar_policy().check(image(size=3 * MB), "avatar_file")

        assert exc_info.value.message == "Max file size is 2 MB."
        assert exc_info.value.field_errors == {"avatar_file": "Max file size is 2 MB."}

    def test_avatar_rejects_non_image(self) -> None:
        with pytest.raises(FileRejectedError) as exc_info:
            avatar_policy().check(image(name="cv.pdf", content_type="application/pdf"), "avatar_file")

        assert exc_info.value.message == "Please select a valid image file."

    def test_attachment_allow_list(self) -> None:
        policy = attachment_policy()
        policy.check(image(name="report.pdf", content_type="application/pdf"), "attachment_file")

        with pytest.raises(FileRejectedError) as exc_info:
            policy.check(image(name="a.gif", content_type="image/gif"), "attachment_file")

        assert exc_info.value.message == "Only .jpg, .jpeg, .png, .webp, .pdf files are accepted."

    def test_attachment_size_ceiling(self) -> None:
        policy = attachment_policy()
        policy.check(image(size=4 * MB), "attachment_file")

        with pytest.raises(FileRejectedError) as exc_info:
            policy.check(image(size=4 * MB + 1), "attachment_file")

        assert exc_info.value.message == "Max file size is 4 MB."


class TestBuildPreview:
    @pytest.mark.asyncio
    async def test_image_gets_data_url(self) -> None:
        file = SelectedFile(name="a.png", content_type="image/png", data=b"png-bytes")

        preview = await build_preview(file)

        expected = base64.b64encode(b"png-bytes").decode("ascii")
        assert preview.preview_payload == f"data:image/png;base64,{expected}"
        assert preview.size_bytes == len(b"png-bytes")

    @pytest.mark.asyncio
    async def test_pdf_has_metadata_only(self) -> None:
        file = SelectedFile(name="r.pdf", content_type="application/pdf", data=b"%PDF")

        preview = await build_preview(file)

        assert preview.preview_payload is None
        assert preview.name == "r.pdf"


class TestPreviewSlot:
    @pytest.mark.asyncio
    async def test_displays_persisted_value_until_selection(self) -> None:
        slot = PreviewSlot("avatar_file", avatar_policy(), "https://cdn.example.com/old.png")
        assert slot.displayed == "https://cdn.example.com/old.png"

        await slot.select(image())

        assert slot.displayed.startswith("data:image/png;base64,")
        assert slot.pending is not None

    @pytest.mark.asyncio
    async def test_rejected_file_restores_persisted_value(self) -> None:
        slot = PreviewSlot("avatar_file", avatar_policy(), "https://cdn.example.com/old.png")
        await slot.select(image())

        with pytest.raises(FileRejectedError):
            await slot.select(image(size=3 * MB))

        assert slot.displayed == "https://cdn.example.com/old.png"
        assert slot.pending is None
        assert slot.preview is None

    @pytest.mark.asyncio
    async def test_clear_during_decode_wins(self) -> None:
        slot = PreviewSlot("avatar_file", avatar_policy(), None)

        task = asyncio.create_task(slot.select(image()))
        await asyncio.sleep(0)
        slot.clear()
        await task

        assert slot.pending is None
        assert slot.displayed is None

    @pytest.mark.asyncio
    async def test_latest_selection_wins(self) -> None:
        slot = PreviewSlot("avatar_file", avatar_policy(), None)
        first = image(name="first.png")
        second = image(name="second.png")

        await asyncio.gather(slot.select(first), slot.select(second))

        assert slot.pending is second

    def test_commit_replaces_persisted_value(self) -> None:
        slot = PreviewSlot("avatar_file", avatar_policy(), "old")

        slot.commit("new")

        assert slot.displayed == "new"
        assert slot.pending is None

"""Tests for attachment resolution."""

import asyncio

from portal.attachments import (
    AttachmentResolver,
    AttachmentSlot,
    ResolutionState,
    payload_to_src,
    resolve_all,
    to_direct_drive_url,
)
from portal.models.records import DriveLinkAttachment, ImageAttachment, LocalStoreAttachment
from portal.services.storage import InMemoryAttachmentStore, StorageError

DIRECT = "https://drive.google.com/uc?export=view&id=abc123"


class BrokenAttachmentStore(InMemoryAttachmentStore):
    async def get(self, key):
        raise StorageError("offline")


class TestDriveUrls:
    def test_file_link(self):
        assert to_direct_drive_url("https://drive.google.com/file/d/abc123/view?usp=sharing") == DIRECT

    def test_open_link(self):
        assert to_direct_drive_url("https://drive.google.com/open?id=abc123") == DIRECT

    def test_other_urls_unchanged(self):
        """Test that non-Drive and malformed input pass through untouched."""
        for url in ["https://example.com/photo.jpg", "https://drive.google.com/drive/folders", "", "not a url"]:
            assert to_direct_drive_url(url) == url


class TestPayloadToSrc:
    def test_bare_base64_becomes_data_url(self):
        assert payload_to_src("AAAA", "image/png") == "data:image/png;base64,AAAA"

    def test_data_url_passes_through(self):
        assert payload_to_src("data:image/png;base64,AAAA") == "data:image/png;base64,AAAA"


class TestTryDirect:
    def test_inline_image(self):
        attachment = ImageAttachment(data="AAAA", mime_type="image/png")
        assert AttachmentResolver.try_direct(attachment) == "data:image/png;base64,AAAA"

    def test_drive_link(self):
        attachment = DriveLinkAttachment(url="https://drive.google.com/file/d/abc123/view")
        assert AttachmentResolver.try_direct(attachment) == DIRECT

    def test_local_needs_lookup(self):
        assert AttachmentResolver.try_direct(LocalStoreAttachment(key="receipt-1")) is None
        assert AttachmentResolver.try_direct(None) is None


class TestResolve:
    def test_local_key_found(self):
        store = InMemoryAttachmentStore()
        asyncio.run(store.save("receipt-1", "data:image/jpeg;base64,AAAA"))
        resolved = asyncio.run(AttachmentResolver(store).resolve(LocalStoreAttachment(key="receipt-1")))
        assert resolved.state == ResolutionState.RESOLVED
        assert resolved.url == "data:image/jpeg;base64,AAAA"

    def test_local_key_missing(self):
        resolved = asyncio.run(
            AttachmentResolver(InMemoryAttachmentStore()).resolve(LocalStoreAttachment(key="gone"))
        )
        assert resolved.state == ResolutionState.ABSENT
        assert resolved.url is None

    def test_store_error_is_absent(self):
        resolved = asyncio.run(
            AttachmentResolver(BrokenAttachmentStore()).resolve(LocalStoreAttachment(key="receipt-1"))
        )
        assert resolved.state == ResolutionState.ABSENT

    def test_nothing_attached(self):
        resolved = asyncio.run(AttachmentResolver(InMemoryAttachmentStore()).resolve(None))
        assert resolved.state == ResolutionState.ABSENT


class TestSlots:
    """Tests for per-row image slots in a list view."""

    def test_initial_states(self):
        assert AttachmentSlot("r1", None).image.state == ResolutionState.ABSENT
        assert AttachmentSlot("r2", ImageAttachment(data="AAAA")).image.state == ResolutionState.RESOLVED
        assert AttachmentSlot("r3", LocalStoreAttachment(key="k")).needs_lookup

    def test_resolve_all_fills_pending(self):
        store = InMemoryAttachmentStore()
        asyncio.run(store.save("k1", "AAAA"))
        slots = [
            AttachmentSlot("r1", LocalStoreAttachment(key="k1")),
            AttachmentSlot("r2", LocalStoreAttachment(key="k2")),
        ]
        asyncio.run(resolve_all(slots, AttachmentResolver(store)))
        assert slots[0].image.state == ResolutionState.RESOLVED
        assert slots[1].image.state == ResolutionState.ABSENT

    def test_unmounted_slot_ignores_result(self):
        """Test that a result arriving after the row is gone is dropped."""
        store = InMemoryAttachmentStore()
        asyncio.run(store.save("k1", "AAAA"))
        slot = AttachmentSlot("r1", LocalStoreAttachment(key="k1"))
        slot.unmount()

        result = asyncio.run(slot.load(AttachmentResolver(store)))

        assert result.state == ResolutionState.RESOLVED
        assert slot.image.state == ResolutionState.PENDING

    def test_store_error_leaves_slot_absent(self):
        slots = [AttachmentSlot("r1", LocalStoreAttachment(key="k1"))]
        asyncio.run(resolve_all(slots, AttachmentResolver(BrokenAttachmentStore())))
        assert slots[0].image.state == ResolutionState.ABSENT

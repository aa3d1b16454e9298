"""Tests for the transfer engine."""
import hashlib
import os
import threading

import pytest

from videomover.core.cancellation import CancellationToken
from videomover.core.config import MoverConfig
from videomover.core.models import PARTIAL_SUFFIX, TransferErrorKind
from videomover.services.batch import sweep_partials
from videomover.services.transfer import TransferEngine, describe_error
from .fixtures import CancellingStream, MemoryContainer, MemoryMediaIndex


@pytest.fixture
def index():
    return MemoryMediaIndex()


@pytest.fixture
def container():
    return MemoryContainer()


@pytest.fixture
def engine(index):
    # Small chunks so multi-chunk paths are exercised
    return TransferEngine(index, chunk_size=16)


class TestTransferSuccess:
    """Happy-path transfers."""

    @pytest.mark.parametrize("content", [
        b"",
        b"a",
        b"exactly sixteen!",
        os.urandom(1000),
    ])
    def test_digest_matches_content(self, engine, index, container, content):
        """The reported digest is the digest of the source bytes."""
        item = index.add("clip.mp4", content)

        result = engine.transfer(item, container)

        assert result.success is True
        assert result.digest == hashlib.sha256(content).hexdigest()
        assert result.bytes_written == len(content)
        assert container.content("clip.mp4") == content

    def test_result_fields(self, engine, index, container):
        item = index.add("clip.mp4", b"video")

        result = engine.transfer(item, container)

        assert result.source_id == item.identity
        assert result.final_name == "clip.mp4"
        assert result.error_kind is None
        assert result.error is None

    def test_no_partial_left(self, engine, index, container):
        item = index.add("clip.mp4", b"video" * 10)

        engine.transfer(item, container)

        assert container.list_names() == ["clip.mp4"]

    def test_temp_created_with_partial_suffix(self, engine, index, container):
        """The only child ever created is the '.partial' temp."""
        created = []
        container.on_create = created.append
        item = index.add("clip.mp4", b"video")

        engine.transfer(item, container)

        assert created == ["clip.mp4" + PARTIAL_SUFFIX]
        assert container.content_types["clip.mp4" + PARTIAL_SUFFIX] == "video/*"

    def test_unknown_size_skips_check(self, engine, index, container):
        """Declared size 0 means unknown, any length is accepted."""
        item = index.add("clip.mp4", b"twelve bytes", size=0)

        result = engine.transfer(item, container)

        assert result.success is True
        assert result.bytes_written == 12

    def test_untrusted_name_is_sanitized(self, engine, index, container):
        item = index.add("../evil/clip.mp4", b"video")

        result = engine.transfer(item, container)

        assert result.final_name == ".._evil_clip.mp4"

    def test_partial_looking_name_survives_sweep(self, engine, index, container):
        """A source named like a temp is committed under a name the sweep leaves alone."""
        item = index.add("clip.mp4.partial", b"video")

        result = engine.transfer(item, container)
        removed = sweep_partials(container)

        assert result.success is True
        assert not result.final_name.endswith(PARTIAL_SUFFIX)
        assert removed == []
        assert container.list_names() == [result.final_name]
        assert container.content(result.final_name) == b"video"

    def test_from_config(self, index, container):
        config = MoverConfig(chunk_size=4, hash_algorithm="md5", content_type="video/mp4")
        engine = TransferEngine.from_config(index, config)
        item = index.add("clip.mp4", b"0123456789")

        result = engine.transfer(item, container)

        assert engine.chunk_size == 4
        assert result.digest == hashlib.md5(b"0123456789").hexdigest()
        assert container.content_types["clip.mp4.partial"] == "video/mp4"

    def test_invalid_chunk_size(self, index):
        with pytest.raises(ValueError):
            TransferEngine(index, chunk_size=0)


class TestCollisions:
    """Final name collision handling."""

    def test_same_name_three_times(self, engine, index, container):
        names = [
            engine.transfer(index.add("clip.mp4", b"x"), container).final_name
            for _ in range(3)
        ]

        assert names == ["clip.mp4", "clip (1).mp4", "clip (2).mp4"]

    def test_existing_file_not_overwritten(self, engine, index):
        container = MemoryContainer({"clip.mp4": b"original"})
        item = index.add("clip.mp4", b"new content")

        result = engine.transfer(item, container)

        assert result.final_name == "clip (1).mp4"
        assert container.content("clip.mp4") == b"original"

    def test_stale_partial_is_create_failure(self, engine, index):
        """A leftover temp with the same name surfaces as CreateFailed."""
        container = MemoryContainer({"clip.mp4.partial": b"junk"})
        item = index.add("clip.mp4", b"video")

        result = engine.transfer(item, container)

        assert result.error_kind is TransferErrorKind.CREATE_FAILED
        assert container.content("clip.mp4.partial") == b"junk"


class TestAtomicVisibility:
    """The final name appears only after verification."""

    def test_final_name_never_listed_during_copy(self, engine, index, container):
        content = os.urandom(200)
        item = index.add("clip.mp4", content)

        engine.transfer(item, container)

        # All listings except the last (after rename) show only the temp
        for listing in container.listings[:-1]:
            assert "clip.mp4" not in listing
        assert container.listings[-1] == ["clip.mp4"]

    def test_final_name_never_listed_on_size_mismatch(self, engine, index, container):
        item = index.add("clip.mp4", b"short", size=100)

        engine.transfer(item, container)

        assert all("clip.mp4" not in listing for listing in container.listings)


class TestFailures:
    """Failure classification and cleanup."""

    def test_create_failed(self, engine, index, container):
        container.fail_create = True
        item = index.add("clip.mp4", b"video")

        result = engine.transfer(item, container)

        assert result.success is False
        assert result.error_kind is TransferErrorKind.CREATE_FAILED
        assert "Permission denied" in result.error
        assert index.opened == []

    def test_name_lookup_error_is_create_failure(self, engine, index, container):
        container.fail_exists = True
        item = index.add("clip.mp4", b"video")

        result = engine.transfer(item, container)

        assert result.error_kind is TransferErrorKind.CREATE_FAILED
        assert "Transport endpoint" in result.error
        assert index.opened == []
        assert container.list_names() == []

    def test_size_mismatch_short(self, engine, index, container):
        item = index.add("clip.mp4", b"truncated", size=1000)

        result = engine.transfer(item, container)

        assert result.error_kind is TransferErrorKind.SIZE_MISMATCH
        assert result.bytes_written == 9
        assert result.digest is None
        assert container.list_names() == []

    def test_size_mismatch_long(self, engine, index, container):
        item = index.add("clip.mp4", b"longer than declared", size=4)

        result = engine.transfer(item, container)

        assert result.error_kind is TransferErrorKind.SIZE_MISMATCH
        assert "expected 4" in result.error
        assert container.list_names() == []

    def test_read_error_is_io_failure(self, engine, index, container):
        item = index.add("clip.mp4", os.urandom(100))
        index.fail_reads(item, good_reads=2)

        result = engine.transfer(item, container)

        assert result.error_kind is TransferErrorKind.IO_FAILURE
        assert result.error == "OSError: Input/output error"
        assert result.bytes_written == 32
        assert container.list_names() == []

    def test_write_error_is_io_failure(self, index, container):
        engine = TransferEngine(index, chunk_size=16 * 1024)
        container.fail_write_after = 0
        item = index.add("clip.mp4", os.urandom(100))

        result = engine.transfer(item, container)

        assert result.error_kind is TransferErrorKind.IO_FAILURE
        assert "No space left" in result.error
        assert container.list_names() == []

    def test_source_open_error(self, engine, index, container):
        item = index.add("clip.mp4", b"video")
        del index.contents[item.identity]

        result = engine.transfer(item, container)

        assert result.error_kind is TransferErrorKind.IO_FAILURE
        assert result.error.startswith("KeyError")
        assert container.list_names() == []

    def test_delete_failure_does_not_mask_error(self, engine, index, container):
        container.fail_delete = True
        item = index.add("clip.mp4", b"x", size=5)

        result = engine.transfer(item, container)

        assert result.error_kind is TransferErrorKind.SIZE_MISMATCH

    def test_rename_failed_keeps_digest(self, engine, index, container):
        container.fail_rename = True
        content = b"fully written"
        item = index.add("clip.mp4", content)

        result = engine.transfer(item, container)

        assert result.error_kind is TransferErrorKind.RENAME_FAILED
        assert result.digest == hashlib.sha256(content).hexdigest()
        assert result.bytes_written == len(content)
        assert result.final_name is None
        assert container.list_names() == []


class TestCancellation:
    """Cooperative cancellation inside the copy loop."""

    def test_cancel_before_start(self, engine, index, container):
        token = CancellationToken()
        token.cancel()
        item = index.add("clip.mp4", b"video")

        result = engine.transfer(item, container, token)

        assert result.error_kind is TransferErrorKind.CANCELLED
        assert result.is_cancelled is True
        assert container.list_names() == []

    def test_cancel_between_chunks(self, engine, index, container):
        token = CancellationToken()
        item = index.add("clip.mp4", os.urandom(100))
        index.stream_factories[item.identity] = lambda data: CancellingStream(data, token)

        result = engine.transfer(item, container, token)

        assert result.error_kind is TransferErrorKind.CANCELLED
        assert result.bytes_written == 16
        assert container.list_names() == []


class TestConcurrentResolution:
    """Engine shared between threads never hands out one name twice."""

    def test_parallel_same_names(self, index, container):
        engine = TransferEngine(index, chunk_size=8)
        items = [index.add("clip.mp4", os.urandom(64)) for _ in range(8)]
        results = []
        lock = threading.Lock()

        def run(item):
            result = engine.transfer(item, container)
            with lock:
                results.append(result)

        threads = [threading.Thread(target=run, args=(item,)) for item in items]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(r.success for r in results)
        names = sorted(r.final_name for r in results)
        assert len(set(names)) == 8
        assert "clip.mp4" in names


def test_describe_error():
    assert describe_error(OSError("boom")) == "OSError: boom"
    assert describe_error(KeyError()) == "KeyError"

"""Tests for the multi-pass erase engine and the block overwriter."""

import pytest

from disk_utils.domain.models import (
    Confirmation,
    ConfirmationState,
    Device,
    EraseMethod,
    ErasePattern,
)
from disk_utils.storage.cancellation import CancellationToken
from disk_utils.storage.device_lock import device_operation, is_operation_active
from disk_utils.storage.erase import BlockOverwriter, EraseEngine, fill_block
from disk_utils.storage.exceptions import (
    ConfirmationAbortedError,
    DeviceBusyError,
    DeviceNotFoundError,
    EraseFailureError,
    ValidationError,
)


SIZE = 64 * 1024


@pytest.fixture
def device():
    return Device(path="/disk/B", size_bytes=SIZE)


@pytest.fixture
def confirmation(device, confirmed):
    return confirmed(device)


@pytest.fixture
def file_device(tmp_path, confirmed):
    """A regular file standing in for a disk, with its confirmation."""

    def build(contents: bytes):
        target = tmp_path / "disk.bin"
        target.write_bytes(contents)
        device = Device(path=str(target), size_bytes=len(contents))
        return target, device, confirmed(device)

    return build


class TestErasePasses:
    @pytest.mark.parametrize(
        "method,patterns",
        [
            (EraseMethod.SINGLE, [ErasePattern.RANDOM]),
            (EraseMethod.DOD_3, [ErasePattern.ZERO, ErasePattern.RANDOM, ErasePattern.ZERO]),
            (EraseMethod.GUTMANN_LITE, [ErasePattern.RANDOM] * 7),
        ],
    )
    def test_pass_sequence(self, device, confirmation, make_overwriter, method, patterns):
        overwriter = make_overwriter()
        engine = EraseEngine(overwriter=overwriter)

        result = engine.erase(device, method, confirmation)

        assert overwriter.patterns == patterns
        assert all(call[0] == "/disk/B" and call[2] == SIZE for call in overwriter.calls)
        assert result.passes_completed == len(patterns)
        assert result.passes_total == len(patterns)
        assert result.complete

    def test_method_by_name(self, device, confirmation, make_overwriter):
        overwriter = make_overwriter()
        result = EraseEngine(overwriter=overwriter).erase(device, "dod-3", confirmation)
        assert result.method is EraseMethod.DOD_3

    def test_unknown_method_is_validation_error(self, device, confirmation, make_overwriter):
        overwriter = make_overwriter()
        with pytest.raises(ValidationError):
            EraseEngine(overwriter=overwriter).erase(device, "dod-7", confirmation)
        assert overwriter.calls == []

    def test_pass_start_callback(self, device, confirmation, make_overwriter):
        seen = []
        EraseEngine(overwriter=make_overwriter()).erase(
            device,
            EraseMethod.DOD_3,
            confirmation,
            on_pass_start=lambda erase_pass, total: seen.append((erase_pass.index, total)),
        )
        assert seen == [(1, 3), (2, 3), (3, 3)]


class TestEraseGuards:
    @pytest.mark.parametrize(
        "confirmation",
        [
            Confirmation(ConfirmationState.UNCONFIRMED, "/disk/B"),
            Confirmation(ConfirmationState.ABORTED, "/disk/B"),
            Confirmation(ConfirmationState.CONFIRMED, "/disk/A"),
            Confirmation(ConfirmationState.CONFIRMED),
            ConfirmationState.CONFIRMED,
        ],
    )
    def test_unconfirmed_never_writes(self, device, make_overwriter, confirmation):
        overwriter = make_overwriter()
        with pytest.raises(ConfirmationAbortedError):
            EraseEngine(overwriter=overwriter).erase(device, EraseMethod.SINGLE, confirmation)
        assert overwriter.calls == []

    def test_vanished_device_never_writes(
        self, device, confirmation, make_overwriter, fake_device_info
    ):
        overwriter = make_overwriter()
        engine = EraseEngine(overwriter=overwriter, device_info=fake_device_info)
        with pytest.raises(DeviceNotFoundError):
            engine.erase(device, EraseMethod.SINGLE, confirmation)
        assert overwriter.calls == []

    def test_uses_fresh_device_size(self, device, confirmation, make_overwriter, fake_device_info):
        fake_device_info.add("/disk/B", 2 * SIZE)
        overwriter = make_overwriter()
        EraseEngine(overwriter=overwriter, device_info=fake_device_info).erase(
            device, EraseMethod.SINGLE, confirmation
        )
        assert overwriter.calls[0][2] == 2 * SIZE

    def test_busy_device(self, device, confirmation, make_overwriter):
        overwriter = make_overwriter()
        with device_operation("/disk/B"):
            with pytest.raises(DeviceBusyError):
                EraseEngine(overwriter=overwriter).erase(
                    device, EraseMethod.SINGLE, confirmation
                )
        assert overwriter.calls == []


class TestEraseFailures:
    def test_failure_on_second_pass_stops(self, device, confirmation, make_overwriter):
        overwriter = make_overwriter(fail_on_call=2)
        with pytest.raises(EraseFailureError) as exc_info:
            EraseEngine(overwriter=overwriter).erase(device, EraseMethod.DOD_3, confirmation)
        assert exc_info.value.pass_index == 2
        assert exc_info.value.passes_completed == 1
        assert len(overwriter.calls) == 2
        assert not is_operation_active("/disk/B")

    def test_short_pass_is_failure(self, device, confirmation, make_overwriter):
        overwriter = make_overwriter(short_on_call=1)
        with pytest.raises(EraseFailureError) as exc_info:
            EraseEngine(overwriter=overwriter).erase(
                device, EraseMethod.GUTMANN_LITE, confirmation
            )
        assert exc_info.value.pass_index == 1
        assert exc_info.value.passes_completed == 0
        assert len(overwriter.calls) == 1


class TestEraseCancellation:
    def test_cancel_mid_pass(self, device, confirmation, make_overwriter):
        overwriter = make_overwriter(cancel_on_call=2)
        token = CancellationToken()
        result = EraseEngine(overwriter=overwriter).erase(
            device, EraseMethod.DOD_3, confirmation, cancel_token=token
        )
        assert result.cancelled
        assert result.passes_completed == 1
        assert result.passes_total == 3
        assert not result.complete
        assert len(overwriter.calls) == 2

    def test_precancelled_token(self, file_device):
        target, device, confirmation = file_device(bytes(SIZE))
        token = CancellationToken()
        token.cancel()
        result = EraseEngine(overwriter=BlockOverwriter(block_size=4096)).erase(
            device, EraseMethod.SINGLE, confirmation, cancel_token=token
        )
        assert result.cancelled
        assert result.passes_completed == 0
        assert target.read_bytes() == bytes(SIZE)


class TestBlockOverwriter:
    def test_zero_pass_covers_whole_file(self, tmp_path):
        target = tmp_path / "disk.bin"
        target.write_bytes(b"\xaa" * 10000)
        progress = []

        written = BlockOverwriter(block_size=4096).write_pattern(
            str(target),
            ErasePattern.ZERO,
            10000,
            progress_callback=lambda done, total: progress.append((done, total)),
        )

        assert written == 10000
        assert target.read_bytes() == bytes(10000)
        assert progress == [(4096, 10000), (8192, 10000), (10000, 10000)]

    def test_random_pass_changes_contents(self, tmp_path):
        target = tmp_path / "disk.bin"
        target.write_bytes(bytes(8192))
        BlockOverwriter(block_size=4096).write_pattern(str(target), ErasePattern.RANDOM, 8192)
        data = target.read_bytes()
        assert len(data) == 8192
        assert data != bytes(8192)

    def test_device_specific_fill(self, tmp_path):
        target = tmp_path / "disk.bin"
        target.write_bytes(bytes(1024))
        BlockOverwriter(block_size=512).write_pattern(
            str(target), ErasePattern.DEVICE_SPECIFIC, 1024
        )
        assert target.read_bytes() == b"\xff" * 1024

    def test_real_erase_dod_3(self, file_device):
        target, device, confirmation = file_device(b"secret" * 1000)
        result = EraseEngine(overwriter=BlockOverwriter(block_size=1024)).erase(
            device, EraseMethod.DOD_3, confirmation
        )
        assert result.complete
        assert target.read_bytes() == bytes(device.size_bytes)


class TestFillBlock:
    def test_zero_reuses_block(self):
        block = bytes(16)
        assert fill_block(ErasePattern.ZERO, 16, block) is block

    def test_random_length(self):
        assert len(fill_block(ErasePattern.RANDOM, 33)) == 33

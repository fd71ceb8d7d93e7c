import pytest
import sys
import os
import threading
import numpy as np
from scipy.stats import entropy as scipy_entropy

# Add src to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

from byte_source import MemoryByteSource, FileByteSource, CancellableSource
from byte_window import ByteWindow
from entropy_calculator import score, shannon_entropy
from entropy_pipeline import EntropyPipeline, analyze_file
from gradient_mapper import GradientMapper, NormalizationState, allocate_pixels, validate_canvas
from errors import Cancelled, IllegalState, InvalidConfiguration, InvalidInput, IoFailure


class ExplodingSource:
    """Fails on the first read."""

    def read_byte(self):
        raise OSError("disk on fire")


class FailingAfterSource:
    def __init__(self, data, fail_at):
        self._inner = MemoryByteSource(data)
        self._left = fail_at

    def read_byte(self):
        if self._left == 0:
            raise OSError("read error")
        self._left -= 1
        return self._inner.read_byte()


class TestByteSource:
    def test_memory_source_ends_with_none(self):
        source = MemoryByteSource(b"\x01\xff")
        assert source.read_byte() == 1
        assert source.read_byte() == 255
        assert source.read_byte() is None
        assert source.read_byte() is None

    def test_file_source_reads_across_chunks(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(bytes(range(10)))
        with open(path, "rb") as f:
            source = FileByteSource(f, chunk_size=3)
            values = []
            while (value := source.read_byte()) is not None:
                values.append(value)
        assert values == list(range(10))

    def test_cancellable_source(self):
        event = threading.Event()
        source = CancellableSource(MemoryByteSource(b"abc"), event)
        assert source.read_byte() == ord("a")
        event.set()
        with pytest.raises(Cancelled):
            source.read_byte()


class TestByteWindow:
    def test_overlap_on_advance(self):
        window = ByteWindow(4, 2, MemoryByteSource(bytes([1, 2, 3, 4, 5, 6])))
        assert list(window.bytes()) == [1, 2, 3, 4]
        assert not window.at_eof

        assert window.advance() is True
        assert list(window.bytes()) == [3, 4, 5, 6]

        # No new byte: there is no further window
        assert window.advance() is False
        assert window.at_eof

    def test_short_source_yields_one_short_window(self):
        window = ByteWindow(10, 1, MemoryByteSource(b"abc"))
        assert window.bytes_in_buffer == 3
        assert bytes(window.bytes()) == b"abc"
        assert window.at_eof

    def test_advance_after_eof_raises(self):
        window = ByteWindow(10, 1, MemoryByteSource(b"abc"))
        with pytest.raises(IllegalState):
            window.advance()

    def test_partial_final_window(self):
        window = ByteWindow(4, 2, MemoryByteSource(bytes([1, 2, 3, 4, 5])))
        assert window.advance() is True
        assert window.at_eof
        assert list(window.bytes()) == [3, 4, 5]

    def test_stride_equal_to_size(self):
        window = ByteWindow(4, 4, MemoryByteSource(bytes([1, 2, 3, 4, 5, 6])))
        assert window.advance() is True
        assert window.at_eof
        assert list(window.bytes()) == [5, 6]

    @pytest.mark.parametrize("size,stride", [(10, 0), (10, 11), (0, 0)])
    def test_invalid_configuration_before_io(self, size, stride):
        with pytest.raises(InvalidConfiguration):
            ByteWindow(size, stride, ExplodingSource())

    def test_no_further_window_keeps_last_contents(self):
        window = ByteWindow(4, 2, MemoryByteSource(bytes([1, 2, 3, 4, 5, 6])))
        window.advance()
        assert window.advance() is False
        assert list(window.bytes()) == [3, 4, 5, 6]

    def test_bytes_view_is_read_only(self):
        window = ByteWindow(4, 1, MemoryByteSource(bytes(8)))
        view = window.bytes()
        with pytest.raises(ValueError):
            view[0] = 1


class TestEntropyCalculator:
    @pytest.mark.parametrize("value", [0, 7, 255])
    def test_single_repeated_byte_is_zero(self, value):
        assert score(bytes([value]) * 64) == 0

    def test_all_byte_values_once(self):
        data = bytes(range(256))
        assert shannon_entropy(data) == pytest.approx(8.0)
        assert score(data) == pytest.approx(8 / 256)
        assert score(data) == pytest.approx(0.03125)

    def test_divides_by_window_length(self):
        data = b"ab" * 8
        # one bit of Shannon entropy over 16 bytes
        assert score(data) == pytest.approx(1 / 16)

    def test_matches_scipy(self):
        rng = np.random.default_rng(1234)
        data = rng.integers(0, 256, size=1000).astype(np.uint8)
        counts = np.bincount(data, minlength=256)
        assert shannon_entropy(data) == pytest.approx(scipy_entropy(counts, base=2))
        assert 0.0 <= score(data) <= 1.0

    def test_empty_window_is_invalid(self):
        with pytest.raises(InvalidInput):
            score(b"")


class TestEntropyPipeline:
    def test_empty_source(self):
        sequence = EntropyPipeline(32, 1).run(MemoryByteSource(b""))
        assert len(sequence) == 0

    def test_overlapping_windows(self):
        sequence = EntropyPipeline(4, 2).run(MemoryByteSource(bytes([1, 2, 3, 4, 5, 6])))
        # both windows hold four distinct bytes: 2 bits / 4 bytes
        np.testing.assert_allclose(sequence, [0.5, 0.5])

    def test_short_source_single_window(self):
        sequence = EntropyPipeline(32, 1).run(MemoryByteSource(b"aaab"))
        assert len(sequence) == 1

    def test_window_count_with_unit_stride(self):
        sequence = EntropyPipeline(4, 1).run(MemoryByteSource(bytes(10)))
        assert len(sequence) == 10 - 4 + 1
        assert not sequence.any()

    def test_trailing_partial_window_is_scored(self):
        sequence = EntropyPipeline(4, 3).run(MemoryByteSource(bytes([0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 2])))
        assert len(sequence) == 4
        # final window is [1, 2]
        assert sequence[-1] == pytest.approx(0.5)

    def test_sequence_is_read_only(self):
        sequence = EntropyPipeline(4, 1).run(MemoryByteSource(bytes(8)))
        with pytest.raises(ValueError):
            sequence[0] = 1.0

    def test_invalid_configuration(self):
        with pytest.raises(InvalidConfiguration):
            EntropyPipeline(10, 11)

    def test_io_failure(self):
        with pytest.raises(IoFailure) as info:
            EntropyPipeline(4, 1).run(FailingAfterSource(bytes(100), fail_at=20))
        assert isinstance(info.value.__cause__, OSError)

    def test_cancellation(self):
        event = threading.Event()
        event.set()
        with pytest.raises(Cancelled):
            EntropyPipeline(4, 1).run(CancellableSource(MemoryByteSource(bytes(100)), event))

    def test_analyze_file(self, tmp_path):
        path = tmp_path / "sample.bin"
        path.write_bytes(bytes(range(256)) * 4)
        sequence = analyze_file(str(path), 256, 256)
        np.testing.assert_allclose(sequence, [8 / 256] * 4)

    def test_analyze_missing_file(self, tmp_path):
        with pytest.raises(IoFailure):
            analyze_file(str(tmp_path / "missing.bin"))


class TestGradientMapper:
    def test_uniform_sequence_renders_single_color(self):
        canvas = GradientMapper().render(np.full(300, 0.25), 80, 60)
        assert canvas.shape == (60, 80)
        assert (canvas == 0).all()

    def test_empty_sequence_renders_neutral_canvas(self):
        canvas = GradientMapper().render(np.zeros(0), 800, 600)
        assert canvas.shape == (600, 800)
        assert (canvas == 0).all()

    def test_pixel_budget(self):
        counts = allocate_pixels(300, 800, 600)
        assert (counts == 1600).all()

        counts = allocate_pixels(7, 10, 3)
        assert counts.sum() == 30
        assert set(counts.tolist()) <= {4, 5}

    def test_more_samples_than_cells_are_clipped(self):
        counts = allocate_pixels(50, 4, 2)
        assert counts.sum() == 8
        assert (counts == 0).sum() == 42

        canvas = GradientMapper().render(np.linspace(0, 1, 50), 4, 2)
        assert canvas.shape == (2, 4)

    def test_rows_wrap(self):
        canvas = GradientMapper().render([0.0, 0.5, 1.0], 3, 2)
        np.testing.assert_array_equal(canvas, [[0, 0, 127], [127, 255, 255]])

    def test_without_scaling(self):
        mapper = GradientMapper(scale=False)
        canvas = mapper.render([0.1, 0.2], 2, 1)
        np.testing.assert_array_equal(canvas, [[0, 25]])

    def test_render_is_deterministic(self):
        sequence = np.random.default_rng(7).random(1234)
        mapper = GradientMapper()
        np.testing.assert_array_equal(mapper.render(sequence, 800, 600), mapper.render(sequence, 800, 600))

    def test_render_into_caller_canvas(self):
        canvas = np.full((2, 2), 99, dtype=np.uint8)
        state = GradientMapper().render_into([0.0, 1.0], canvas)
        np.testing.assert_array_equal(canvas, [[0, 0], [255, 255]])
        assert state.scale_factor == 1.0
        assert state.average == pytest.approx(0.5)

    def test_small_palette(self):
        canvas = GradientMapper(steps=4).render([0.0, 0.5, 1.0], 3, 1)
        np.testing.assert_array_equal(canvas, [[0, 1, 3]])

    def test_nan_is_invalid(self):
        with pytest.raises(InvalidInput):
            GradientMapper().render([0.1, float("nan")], 10, 10)

    def test_invalid_canvas(self):
        with pytest.raises(InvalidConfiguration):
            GradientMapper().render([0.1], 0, 10)

    @pytest.mark.parametrize("width,height", [(-5, 10), (10, 0)])
    def test_validate_canvas(self, width, height):
        with pytest.raises(InvalidConfiguration):
            validate_canvas(width, height)

    def test_render_into_rejects_empty_canvas(self):
        with pytest.raises(InvalidConfiguration):
            GradientMapper().render_into([0.1, 0.2], np.zeros((0, 4), dtype=np.uint8))

    def test_normalization_state(self):
        state = NormalizationState.from_sequence(np.array([0.2, 0.4, 0.6]))
        assert state.min_value == pytest.approx(0.2)
        assert state.max_value == pytest.approx(0.6)
        assert state.scale_factor == pytest.approx(2.5)

        flat = NormalizationState.from_sequence(np.array([0.3, 0.3]))
        assert flat.scale_factor == 1.0


if __name__ == "__main__":
    sys.exit(pytest.main(["-v", __file__]))

import pytest

from op_counter import count_operations, format_count


def test_counts_for_known_layer():
    results = count_operations(32, 32, 3, 10, 3)
    assert results['output_shape'] == (30, 30, 10)
    pixels = 30 * 30 * 10
    assert results['mults'] == pixels * 27
    assert results['breakdown'] == {
        'intra_kernel': pixels * 8 * 3,
        'channel_merge': pixels * 2,
        'bias': pixels,
    }
    assert results['adds'] == pixels * (24 + 2 + 1)
    assert results['total_ops'] == results['mults'] + results['adds']
    assert results['zero_ops']['total'] == 0


def test_padding_and_stride_change_output_shape():
    assert count_operations(5, 5, 1, 1, 3, stride=1, padding=1)['output_shape'] == (5, 5, 1)
    assert count_operations(7, 7, 1, 2, 3, stride=2)['output_shape'] == (3, 3, 2)


def test_zero_ops_from_sparsity():
    results = count_operations(4, 4, 1, 1, 3, sparsity=50)
    assert results['mults'] == 4 * 9
    assert results['zero_ops']['mults'] == pytest.approx(18)
    assert results['zero_ops']['adds'] == pytest.approx(18)
    assert results['zero_ops']['total'] == pytest.approx(36)


def test_sparsity_is_clamped():
    assert count_operations(4, 4, 1, 1, 3, sparsity=150)['zero_ops']['mults'] == pytest.approx(36 * 0.99)


def test_invalid_shape_gives_no_counts():
    results = count_operations(3, 3, 1, 1, 5)
    assert results['output_shape'] is None
    assert results['mults'] == 0
    assert results['total_ops'] == 0


def test_stride_zero_treated_as_one():
    assert count_operations(5, 5, 1, 1, 3, stride=0)['output_shape'] == (3, 3, 1)


@pytest.mark.parametrize("num, text", [
    (0, "0"),
    (999, "999"),
    (1500, "1.50 k"),
    (2_000_000, "2.00 M"),
    (3_250_000_000, "3.25 B"),
    (12.5, "12.50"),
])
def test_format_count(num, text):
    assert format_count(num) == text

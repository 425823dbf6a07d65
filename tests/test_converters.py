import pytest

from timsdata.converters import (
    ConvertableDomain,
    Frame2RtConverter,
    Scan2ImConverter,
    Tof2MzConverter,
)

RT_VALUES = [0.1, 0.2, 0.3, 0.4]


@pytest.mark.parametrize(
    "converter, value",
    [
        (Frame2RtConverter(RT_VALUES), 2),
        (Scan2ImConverter.from_boundaries(0.6, 1.6, 1000), 300),
        (Tof2MzConverter.from_boundaries(100.0, 1700.0, 400000), 1234),
    ],
)
def test_converters_share_interface(converter, value):
    assert isinstance(converter, ConvertableDomain)
    assert converter.invert(converter.convert(value)) == pytest.approx(value)


def test_frame_to_rt_convert_integer_index():
    converter = Frame2RtConverter(RT_VALUES)
    assert converter.convert(1) == pytest.approx(0.2)
    assert converter.convert(3) == pytest.approx(0.4)


def test_frame_to_rt_convert_fraction_averages_neighbours():
    converter = Frame2RtConverter(RT_VALUES)
    expected = (RT_VALUES[1] + RT_VALUES[2]) / 2
    assert converter.convert(1.5) == pytest.approx(expected)


def test_frame_to_rt_convert_out_of_range():
    with pytest.raises(IndexError):
        Frame2RtConverter(RT_VALUES).convert(10)


def test_frame_to_rt_invert_exact_values():
    converter = Frame2RtConverter(RT_VALUES)
    for index, rt in enumerate(RT_VALUES):
        assert converter.invert(rt) == index


def test_frame_to_rt_invert_between_values():
    converter = Frame2RtConverter(RT_VALUES)
    result = converter.invert(0.25)
    assert 2 < result < 3


def test_frame_to_rt_invert_outside_range():
    converter = Frame2RtConverter(RT_VALUES)
    assert converter.invert(0.0) == 0
    assert converter.invert(10.0) == len(RT_VALUES)


def test_frame_to_rt_invert_nan():
    with pytest.raises(ValueError):
        Frame2RtConverter(RT_VALUES).invert(float("nan"))


def test_scan_to_im_boundaries():
    converter = Scan2ImConverter.from_boundaries(0.6, 1.6, 1000)
    assert converter.convert(0) == pytest.approx(1.6)
    assert converter.convert(1000) == pytest.approx(0.6)


def test_scan_to_im_decreasing():
    converter = Scan2ImConverter.from_boundaries(0.6, 1.6, 1000)
    values = [converter.convert(scan) for scan in range(0, 1001, 100)]
    assert values == sorted(values, reverse=True)


@pytest.mark.parametrize("scan", [0, 17, 250.5, 999])
def test_scan_to_im_round_trip(scan):
    converter = Scan2ImConverter.from_boundaries(0.6, 1.6, 1000)
    assert converter.invert(converter.convert(scan)) == pytest.approx(scan)


def test_tof_to_mz_boundaries():
    converter = Tof2MzConverter.from_boundaries(100.0, 1700.0, 400000)
    assert converter.convert(0) == pytest.approx(100.0)
    assert converter.convert(400000) == pytest.approx(1700.0)


@pytest.mark.parametrize("tof", [0, 1, 12345, 399999])
def test_tof_to_mz_round_trip(tof):
    converter = Tof2MzConverter.from_boundaries(100.0, 1700.0, 400000)
    assert converter.invert(converter.convert(tof)) == pytest.approx(tof, abs=1e-6)


def test_regress_recovers_exact_converter():
    base = Tof2MzConverter.from_boundaries(100.0, 1700.0, 400000)
    pairs = [(base.convert(tof), tof) for tof in (0, 1000, 50000, 400000)]
    fitted = Tof2MzConverter.regress_from_pairs(pairs)
    assert fitted.tof_slope == pytest.approx(base.tof_slope)
    assert fitted.tof_intercept == pytest.approx(base.tof_intercept)


def test_regress_needs_two_pairs():
    with pytest.raises(ValueError):
        Tof2MzConverter.regress_from_pairs([(500.0, 100)])


def test_regress_rejects_constant_tof():
    with pytest.raises(ValueError):
        Tof2MzConverter.regress_from_pairs([(500.0, 100), (501.0, 100)])
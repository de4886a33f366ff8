import pytest

from tubely.ingest.ingest_models import AspectBucket
from tubely.media.aspect import RATIO_TOLERANCE, bucket_prefix, classify


@pytest.mark.parametrize(
    ("width", "height", "expected"),
    [
        (1920, 1080, AspectBucket.LANDSCAPE),
        (1280, 720, AspectBucket.LANDSCAPE),
        (1080, 1920, AspectBucket.PORTRAIT),
        (720, 1280, AspectBucket.PORTRAIT),
        (1000, 1000, AspectBucket.OTHER),
        (640, 480, AspectBucket.OTHER),
        (0, 1080, AspectBucket.OTHER),
    ],
)
def test_classify_standard_geometries(width: int, height: int, expected: AspectBucket) -> None:
    assert classify(width, height) is expected


@pytest.mark.parametrize("width", [0, 1, 1920, 10_000])
def test_zero_height_is_other(width: int) -> None:
    assert classify(width, 0) is AspectBucket.OTHER


def test_classify_is_deterministic() -> None:
    results = {classify(1918, 1080) for _ in range(100)}

    assert results == {AspectBucket.LANDSCAPE}


def test_tolerance_constant_is_two_hundredths() -> None:
    assert RATIO_TOLERANCE == 0.02


# Ratios at 16/9 +- 0.019 (inside) and +- 0.021 (outside), height fixed at 1000.
@pytest.mark.parametrize(
    ("width", "expected"),
    [
        (1797, AspectBucket.LANDSCAPE),  # 1.797, delta +0.0192
        (1759, AspectBucket.LANDSCAPE),  # 1.759, delta -0.0188
        (1799, AspectBucket.OTHER),  # 1.799, delta +0.0212
        (1757, AspectBucket.OTHER),  # 1.757, delta -0.0208
    ],
)
def test_landscape_tolerance_boundary(width: int, expected: AspectBucket) -> None:
    assert classify(width, 1000) is expected


@pytest.mark.parametrize(
    ("width", "expected"),
    [
        (5815, AspectBucket.PORTRAIT),  # 0.5815, delta +0.019
        (5435, AspectBucket.PORTRAIT),  # 0.5435, delta -0.019
        (5835, AspectBucket.OTHER),  # 0.5835, delta +0.021
        (5415, AspectBucket.OTHER),  # 0.5415, delta -0.021
    ],
)
def test_portrait_tolerance_boundary(width: int, expected: AspectBucket) -> None:
    assert classify(width, 10_000) is expected


def test_bucket_prefixes() -> None:
    assert bucket_prefix(AspectBucket.LANDSCAPE) == "landscape/"
    assert bucket_prefix(AspectBucket.PORTRAIT) == "portrait/"
    assert bucket_prefix(AspectBucket.OTHER) == "other/"

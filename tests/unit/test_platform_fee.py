import pytest

from probook.services.earning_service import split_platform_fee


@pytest.mark.parametrize(
    "gross,rate,expected",
    [
        (160000, 0.15, (24000, 136000)),
        (10, 0.15, (2, 8)),  # 1.5 rounds half up
        (9, 0.15, (1, 8)),  # 1.35
        (5000, 0.0, (0, 5000)),
        (1, 0.5, (1, 0)),
    ],
)
def test_split(gross, rate, expected):
    fee, net = split_platform_fee(gross, rate)
    assert (fee, net) == expected
    assert fee + net == gross

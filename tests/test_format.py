import time

import pytest

from dirserve.utils.format import NumberPattern, formatSize, formatTimestamp


@pytest.mark.parametrize(
	"value,pattern,expected",
	[
		(5, "#,000", "005"),
		(10, "#,000", "010"),
		(0, "#,000", "000"),
		(1234, "#,000", "1,234"),
		(1234567, "#,000", "1,234,567"),
		(1234567, "#,##0", "1,234,567"),
		(0, "#", "0"),
		(1234.5, "#,##0.00", "1,234.50"),
		(1234.567, "0.#", "1234.6"),
		(2048, "# bytes", "2048 bytes"),
		(12, "0000", "0012"),
		(-5, "#,000", "-005"),
	],
)
def test_format_size(value, pattern, expected):
	assert formatSize(value, pattern) == expected


def test_number_pattern_parse():
	assert NumberPattern.Parse("#,000") == NumberPattern("", "", 3, 3, 0, 0)
	assert NumberPattern.Parse("~#,##0.0# KB") == NumberPattern("~", " KB", 1, 3, 1, 2)


def test_number_pattern_without_digits():
	with pytest.raises(ValueError):
		NumberPattern.Parse("bytes")


def test_format_timestamp(monkeypatch):
	if not hasattr(time, "tzset"):
		pytest.skip("Timezone can only be set on Unix")
	monkeypatch.setenv("TZ", "UTC")
	time.tzset()
	assert formatTimestamp(1_700_000_000, "%Y-%m-%d %H:%M %z") == "2023-11-14 22:13 +0000"


# EOF

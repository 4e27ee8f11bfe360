from datetime import datetime
from decimal import Decimal, ROUND_HALF_EVEN
from functools import lru_cache
from typing import NamedTuple

# --
# Formatting of file sizes and timestamps for directory listings. Sizes use
# decimal patterns in the style of `#,##0.00`, where `0` is a mandatory digit,
# `#` an optional digit, `,` the grouping separator and `.` the decimal
# separator. Anything before or after the digits is kept as a literal.

PATTERN_CHARS: str = "#0,."


class NumberPattern(NamedTuple):
	prefix: str
	suffix: str
	minInteger: int
	grouping: int
	minFraction: int
	maxFraction: int

	@staticmethod
	def Parse(pattern: str) -> "NumberPattern":
		n: int = len(pattern)
		i: int = 0
		while i < n and pattern[i] not in PATTERN_CHARS:
			i += 1
		j: int = n
		while j > i and pattern[j - 1] not in PATTERN_CHARS:
			j -= 1
		if i == j:
			raise ValueError(f"Number pattern has no digits: {pattern!r}")
		integer, _, fraction = pattern[i:j].partition(".")
		if "," in fraction or "." in fraction:
			raise ValueError(f"Malformed fraction in number pattern: {pattern!r}")
		return NumberPattern(
			prefix=pattern[:i],
			suffix=pattern[j:],
			minInteger=integer.count("0"),
			grouping=len(integer) - integer.rfind(",") - 1 if "," in integer else 0,
			minFraction=fraction.count("0"),
			maxFraction=len(fraction),
		)


@lru_cache(maxsize=64)
def numberPattern(pattern: str) -> NumberPattern:
	return NumberPattern.Parse(pattern)


def group(digits: str, size: int, separator: str = ",") -> str:
	if size <= 0 or len(digits) <= size:
		return digits
	head: int = len(digits) % size or size
	chunks: list[str] = [digits[:head]]
	for k in range(head, len(digits), size):
		chunks.append(digits[k : k + size])
	return separator.join(chunks)


def formatSize(value: int | float, pattern: str) -> str:
	"""Formats the given number using the decimal `pattern`, for instance
	`formatSize(5, "#,000") == "005"`."""
	p: NumberPattern = numberPattern(pattern)
	number: Decimal = Decimal(value).quantize(
		Decimal(1).scaleb(-p.maxFraction), rounding=ROUND_HALF_EVEN
	)
	sign: str = "-" if number < 0 else ""
	integer, _, fraction = f"{abs(number):f}".partition(".")
	fraction = fraction[: p.maxFraction].rstrip("0").ljust(p.minFraction, "0")
	integer = integer.lstrip("0").rjust(p.minInteger, "0")
	if not integer and not fraction:
		integer = "0"
	integer = group(integer, p.grouping)
	return f"{sign}{p.prefix}{integer}{'.' if fraction else ''}{fraction}{p.suffix}"


def formatTimestamp(seconds: float, pattern: str) -> str:
	"""Formats the epoch `seconds` in the local timezone using the `strftime`
	pattern."""
	return datetime.fromtimestamp(seconds).astimezone().strftime(pattern)



def printable(text: str) -> str:
	"""Returns `text` with the surrogate escapes of undecodable filesystem
	names replaced, so that it can be encoded as UTF-8."""
	return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


# EOF

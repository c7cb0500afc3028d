from __future__ import annotations

import math
from typing import Any, Tuple

RationalPair = Tuple[int, int]
DMS = Tuple[RationalPair, RationalPair, RationalPair]

SECONDS_DENOMINATOR = 10000


def to_dms(decimal_degrees: float) -> DMS:
	"""
	Decimal degrees -> ((deg, 1), (min, 1), (sec * 10000, 10000)).
	Expects the absolute value; the sign travels in the hemisphere reference.
	"""
	degrees = math.floor(decimal_degrees)
	minutes_float = (decimal_degrees - degrees) * 60
	minutes = math.floor(minutes_float)
	seconds = (minutes_float - minutes) * 60
	return (
		(int(degrees), 1),
		(int(minutes), 1),
		(int(round(seconds * SECONDS_DENOMINATOR)), SECONDS_DENOMINATOR),
	)


def _rational_to_float(x: Any) -> float:
	if isinstance(x, (tuple, list)) and len(x) == 2:
		num, den = x
		if not den:
			return 0.0
		return float(num) / float(den)
	return float(x)


def from_dms(degrees: Any, minutes: Any, seconds: Any) -> float:
	return (
		_rational_to_float(degrees)
		+ _rational_to_float(minutes) / 60.0
		+ _rational_to_float(seconds) / 3600.0
	)


def hemisphere_ref(value: float, positive: str, negative: str) -> str:
	return positive if value >= 0 else negative


def signed_degrees(dms: Any, ref: str, negative: str) -> float:
	deg = from_dms(dms[0], dms[1], dms[2])
	return -abs(deg) if ref == negative else abs(deg)

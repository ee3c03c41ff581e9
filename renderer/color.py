"""색상 파서 모듈 — 6자리 16진수 문자열을 RGBA 튜플로 변환한다."""

import string

from errors import InvalidColorFormat

Color = tuple[int, int, int, int]

_HEX_DIGITS = frozenset(string.hexdigits)


def parse_hex_color(value: str) -> Color:
    """'#RRGGBB' 또는 'RRGGBB' 문자열을 불투명 RGBA 색상으로 변환한다.

    Raises:
        InvalidColorFormat: 길이가 6이 아니거나 16진수가 아닌 문자가 있을 때
    """
    digits = value[1:] if value.startswith("#") else value
    if len(digits) != 6:
        raise InvalidColorFormat(f"색상은 16진수 6자리여야 합니다: {value!r}")
    # int(x, 16)은 '+f', ' f' 같은 값도 받아들이므로 문자 단위로 검사
    if not set(digits) <= _HEX_DIGITS:
        raise InvalidColorFormat(f"16진수가 아닌 문자가 포함됨: {value!r}")

    r = int(digits[0:2], 16)
    g = int(digits[2:4], 16)
    b = int(digits[4:6], 16)
    return (r, g, b, 255)

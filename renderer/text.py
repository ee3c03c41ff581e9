"""텍스트 렌더링 모듈 — 번들 폰트 레지스트리, 폰트 로드 체인, 캡션 글자 그리기.

폰트를 쓸 수 없을 때는 글자 하나를 고정폭 셀로 보고 사각형으로 그리는
도형 폴백 렌더러를 사용한다.
"""

import logging
import math
from collections.abc import Callable, Iterable
from io import BytesIO
from pathlib import Path
from types import MappingProxyType

from PIL import ImageDraw, ImageFont

from errors import FontLoadFailure, FontRenderFailure
from renderer.canvas import Point, Size
from renderer.color import Color

logger = logging.getLogger(__name__)

# 번들 폰트 — 첫 번째가 기본 폰트
_FONT_DIR = Path(__file__).parent.parent / "assets" / "fonts"
AVAILABLE_FONTS = (
    "CourierPrime-Bold",
    "AmericanTypewriter",
    "BigBlueTermPlusNerdFont-Regular",
    "HeavyDataNerdFont-Regular",
)
DEFAULT_FONT = AVAILABLE_FONTS[0]


def _load_bundled(font_dir: Path) -> dict[str, bytes]:
    """폰트 디렉토리에서 .ttf, 없으면 .ttc 파일을 읽는다."""
    assets = {}
    for name in AVAILABLE_FONTS:
        for ext in (".ttf", ".ttc"):
            path = font_dir / f"{name}{ext}"
            if path.is_file():
                assets[name] = path.read_bytes()
                break
        else:
            logger.debug("번들 폰트 없음: %s", name)
    return assets


# 프로세스 전역 읽기 전용 레지스트리 (이름 → 폰트 바이트)
_REGISTRY = MappingProxyType(_load_bundled(_FONT_DIR))

# 폰트 캐시
_font_cache: dict[tuple[str, int], ImageFont.FreeTypeFont] = {}


def list_fonts() -> list[str]:
    """사용 가능한 폰트 이름 목록을 반환한다."""
    return list(AVAILABLE_FONTS)


def _open_font(name: str, size: int) -> ImageFont.FreeTypeFont:
    """레지스트리의 폰트를 지정 크기로 연다 (캐싱)."""
    data = _REGISTRY.get(name)
    if data is None:
        raise FontLoadFailure(f"폰트 '{name}'을(를) 찾을 수 없음")

    key = (name, size)
    if key not in _font_cache:
        try:
            _font_cache[key] = ImageFont.truetype(BytesIO(data), size)
        except (OSError, ValueError) as e:
            raise FontLoadFailure(f"폰트 '{name}' 파싱 실패: {e}") from e
    return _font_cache[key]


def _open_builtin(size: int) -> ImageFont.FreeTypeFont:
    """Pillow 내장 폰트를 지정 크기로 연다 (번들 폰트가 모두 없을 때)."""
    key = ("", size)
    if key not in _font_cache:
        try:
            font = ImageFont.load_default(size)
        except (OSError, ValueError) as e:
            raise FontLoadFailure(f"Pillow 내장 폰트 로드 실패: {e}") from e
        # FreeType 없이 빌드된 Pillow는 크기 조절이 안 되는 비트맵 폰트를 준다
        if not isinstance(font, ImageFont.FreeTypeFont):
            raise FontLoadFailure("Pillow 내장 폰트가 FreeType 폰트가 아님")
        _font_cache[key] = font
    return _font_cache[key]


def first_success(attempts: Iterable[Callable[[], ImageFont.FreeTypeFont]]) -> ImageFont.FreeTypeFont:
    """순서대로 시도하여 처음 성공한 결과를 반환한다. 모두 실패하면 오류를 모아 던진다."""
    errors = []
    for attempt in attempts:
        try:
            return attempt()
        except FontLoadFailure as e:
            errors.append(str(e))
    raise FontLoadFailure("; ".join(errors) or "시도할 폰트가 없음")


def load_font(name: str, size: int) -> ImageFont.FreeTypeFont:
    """요청한 폰트 → 기본 폰트 → Pillow 내장 폰트 순으로 로드한다.

    Raises:
        FontLoadFailure: 어느 폰트도 사용할 수 없을 때
    """
    name = name or DEFAULT_FONT
    attempts = [lambda: _open_font(name, size)]
    if name != DEFAULT_FONT:
        attempts.append(lambda: _open_font(DEFAULT_FONT, size))
    attempts.append(lambda: _open_builtin(size))
    return first_success(attempts)


def measure_text(text: str, font: ImageFont.FreeTypeFont) -> Size:
    """글자별 advance 합계(올림)와 줄 높이를 반환한다."""
    width = math.ceil(sum(font.getlength(ch) for ch in text))
    ascent, descent = font.getmetrics()
    return Size(width, ascent + descent)


def draw_text(draw: ImageDraw.ImageDraw, anchor: Point, text: str,
              font: ImageFont.FreeTypeFont, color: Color) -> None:
    """anchor를 기준선 시작점으로 하여 텍스트를 그린다."""
    try:
        draw.text(anchor, text, font=font, fill=color, anchor="ls")
    except (OSError, ValueError) as e:
        raise FontRenderFailure(f"텍스트 그리기 실패: {e}") from e


def fallback_cell_width(font_size: int) -> int:
    return font_size // 2


def measure_fallback(text: str, font_size: int) -> Size:
    """폴백 렌더러의 근사 텍스트 크기 (고정폭 셀)."""
    return Size(len(text) * fallback_cell_width(font_size), font_size)


def draw_fallback(draw: ImageDraw.ImageDraw, anchor: Point, text: str,
                  font_size: int, color: Color) -> None:
    """글자마다 단순 도형을 그린다.

    '-'는 가로 막대, '\\''는 위쪽의 짧은 세로 막대, 공백은 건너뛰고
    나머지 글자는 셀 폭의 80% 사각형으로 그린다.
    """
    cell = fallback_cell_width(font_size)
    glyph_w = int(cell * 0.8)
    glyph_h = font_size
    x, y = anchor
    top = y - glyph_h // 2

    if glyph_w <= 0:
        return

    for i, ch in enumerate(text):
        if ch == " ":
            continue
        cx = x + i * cell
        if ch == "-":
            draw.rectangle((cx, y - 2, cx + glyph_w - 1, y + 2), fill=color)
        elif ch == "'":
            x0 = cx + glyph_w // 3
            x1 = cx + 2 * glyph_w // 3
            if x1 > x0 and glyph_h // 3 > 0:
                draw.rectangle((x0, top, x1 - 1, top + glyph_h // 3 - 1), fill=color)
        else:
            draw.rectangle((cx, top, cx + glyph_w - 1, top + glyph_h - 1), fill=color)

"""프레임 캔버스 합성 모듈 — 단색 테두리 / 인스타그램 4:5 캔버스."""

import enum
import logging
from dataclasses import dataclass
from typing import NamedTuple

from PIL import Image

from errors import FrameGeometryError
from renderer.color import Color

logger = logging.getLogger(__name__)

# 인스타그램 세로 게시물 크기 (4:5)
INSTAGRAM_W = 1080
INSTAGRAM_H = 1350

WHITE = (255, 255, 255, 255)


class Size(NamedTuple):
    width: int
    height: int


class Point(NamedTuple):
    x: int
    y: int


class BorderStyle(enum.Enum):
    """테두리 스타일."""

    SOLID = "solid"
    INSTAGRAM = "instagram"

    @classmethod
    def parse(cls, name: str | None) -> "BorderStyle":
        """스타일 이름을 변환한다. 알 수 없는 이름은 경고 후 SOLID로 처리한다."""
        key = (name or "").strip().lower()
        for style in cls:
            if style.value == key:
                return style
        logger.warning("알 수 없는 테두리 스타일 %r — solid 테두리를 사용합니다.", name)
        return cls.SOLID

    @property
    def suffix(self) -> str:
        """출력 파일 이름 접미사."""
        return "_instagram" if self is BorderStyle.INSTAGRAM else "_framed"


@dataclass
class CompositionResult:
    """합성 결과.

    Attributes:
        canvas: 최종 RGB 캔버스 (캡션은 이 위에 직접 그린다)
        resized_size: 테두리를 제외한 콘텐츠 크기 (인스타그램은 축소·패딩 후 크기)
        image_position: 콘텐츠 좌상단 좌표 (인스타그램에서만 존재)
    """
    canvas: Image.Image
    resized_size: Size
    image_position: Point | None = None


def half(n: int) -> int:
    """0 방향으로 버림하는 2 나눗셈."""
    return n // 2 if n >= 0 else -(-n // 2)


def surround(image: Image.Image, ring: int, color: Color) -> Image.Image:
    """이미지 둘레에 ring 픽셀 두께의 단색 띠를 두른 새 이미지를 반환한다."""
    w, h = image.size
    result = Image.new("RGB", (w + 2 * ring, h + 2 * ring), color[:3])
    result.paste(image, (ring, ring))
    return result


def create_solid_border(image: Image.Image, thickness: int, color: Color,
                        padding: int) -> Image.Image:
    """색 테두리를 두르고, padding > 0이면 그 바깥에 흰 여백을 추가한다."""
    bordered = surround(image, thickness, color)
    if padding > 0:
        return surround(bordered, padding, WHITE)
    return bordered


def create_instagram_frame(
    image: Image.Image,
    max_size: int,
    thickness: int,
    color: Color,
    padding: int,
) -> tuple[Image.Image, Size, Point]:
    """1080x1350 흰 캔버스 중앙에 축소한 이미지를 배치한다.

    테두리와 패딩을 포함한 블록은 항상 캔버스 안에 들어가므로 콘텐츠 좌상단
    좌표도 캔버스 안에 있다.

    Raises:
        FrameGeometryError: 테두리와 패딩만으로 캔버스를 넘을 때

    Returns:
        (캔버스, 테두리 제외 크기, 콘텐츠 좌상단 좌표)
    """
    orig_w, orig_h = image.size
    ring = thickness + padding
    avail_w = INSTAGRAM_W - 2 * ring
    avail_h = INSTAGRAM_H - 2 * ring
    if avail_w <= 0 or avail_h <= 0:
        raise FrameGeometryError(
            f"테두리 {thickness}px + 패딩 {padding}px이 {INSTAGRAM_W}x{INSTAGRAM_H} 캔버스보다 큽니다"
        )

    # 테두리를 포함한 블록이 캔버스를 넘지 않도록 배율을 제한한다
    scale = min(max_size / orig_w, max_size / orig_h, avail_w / orig_w, avail_h / orig_h)
    new_w = min(avail_w, max(1, int(orig_w * scale)))
    new_h = min(avail_h, max(1, int(orig_h * scale)))
    content = image.resize((new_w, new_h), Image.Resampling.LANCZOS)

    # 패딩 후 크기가 이후 모든 계산의 기준이 된다
    if padding > 0:
        content = surround(content, padding, WHITE)
        new_w, new_h = content.size

    bordered = surround(content, thickness, color)

    canvas = Image.new("RGB", (INSTAGRAM_W, INSTAGRAM_H), WHITE[:3])
    x = half(INSTAGRAM_W - bordered.width)
    y = half(INSTAGRAM_H - bordered.height)
    canvas.paste(bordered, (x, y))

    logger.debug("인스타그램 배치: scale=%.4f, 콘텐츠 %dx%d, 위치 (%d, %d)",
                 scale, new_w, new_h, x, y)
    return canvas, Size(new_w, new_h), Point(x + thickness + padding, y + thickness + padding)


def compose(
    image: Image.Image,
    style: BorderStyle,
    thickness: int,
    color: Color,
    padding: int,
    instagram_max_size: int,
) -> CompositionResult:
    """스타일에 맞는 프레임 캔버스를 만든다."""
    if thickness < 0 or padding < 0:
        raise ValueError(f"두께와 패딩은 0 이상이어야 합니다: thickness={thickness}, padding={padding}")
    if image.mode != "RGB":
        image = image.convert("RGB")

    if style is BorderStyle.INSTAGRAM:
        if instagram_max_size <= 0:
            raise ValueError(f"instagram_max_size는 양수여야 합니다: {instagram_max_size}")
        canvas, resized, position = create_instagram_frame(
            image, instagram_max_size, thickness, color, padding,
        )
        return CompositionResult(canvas, resized, position)
    if style is BorderStyle.SOLID:
        canvas = create_solid_border(image, thickness, color, padding)
        return CompositionResult(canvas, Size(*image.size), None)
    raise ValueError(f"지원하지 않는 스타일: {style!r}")

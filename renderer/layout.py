"""캡션 레이아웃 모듈 — 테두리/패딩 기하에서 캡션 위치를 계산하고 그린다."""

import logging
from dataclasses import dataclass

from PIL import Image, ImageDraw

from errors import FontLoadFailure, FontRenderFailure
from renderer.canvas import Point, Size, half
from renderer.color import Color
from renderer.text import draw_fallback, draw_text, load_font, measure_fallback, measure_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptionSpec:
    """캡션 텍스트와 글꼴 설정."""
    text: str
    font_size: int
    font_color: Color = (0, 0, 0, 255)
    font_name: str = ""


def compute_anchor(
    text_size: Size,
    content_size: Size,
    border_thickness: int,
    padding: int,
    position: Point | None,
) -> Point:
    """캡션 기준점(왼쪽 기준선)을 계산한다.

    position이 있으면(인스타그램) 콘텐츠 아래 테두리에서 한 줄 높이만큼 내려간
    위치, 없으면(단색) 아래쪽 여백 띠의 세로 중앙에 둔다.
    """
    text_w, line_h = text_size
    content_w, content_h = content_size

    if position is not None:
        x = position.x + half(content_w - text_w)
        y = position.y + content_h + border_thickness + line_h
        return Point(x, y)

    margin = border_thickness + padding
    x = margin + half(content_w - text_w)
    y = margin + content_h + half(margin - line_h) + line_h
    return Point(x, y)


class Layout:
    """합성된 캔버스 위에 캡션을 배치한다."""

    def __init__(self, content_size: Size, border_thickness: int, padding: int,
                 position: Point | None = None):
        self.content_size = content_size
        self.border_thickness = border_thickness
        self.padding = padding
        self.position = position

    def anchor_for(self, text_size: Size) -> Point:
        return compute_anchor(text_size, self.content_size, self.border_thickness,
                              self.padding, self.position)

    def draw(self, canvas: Image.Image, caption: CaptionSpec) -> Image.Image:
        """캡션을 캔버스에 직접 그리고 같은 캔버스를 반환한다.

        폰트 로드나 그리기에 실패하면 경고를 남기고 도형 폴백으로 그린다.
        """
        draw = ImageDraw.Draw(canvas)
        fill = caption.font_color[:3]

        try:
            font = load_font(caption.font_name, caption.font_size)
            anchor = self.anchor_for(measure_text(caption.text, font))
            draw_text(draw, anchor, caption.text, font, fill)
            return canvas
        except FontLoadFailure as e:
            logger.warning("폰트 '%s'을(를) 불러올 수 없음: %s — 폴백 렌더러 사용",
                           caption.font_name, e)
        except FontRenderFailure as e:
            logger.warning("텍스트 그리기 오류: %s — 폴백 렌더러 사용", e)

        anchor = self.anchor_for(measure_fallback(caption.text, caption.font_size))
        draw_fallback(draw, anchor, caption.text, caption.font_size, fill)
        return canvas


def draw_caption(
    canvas: Image.Image,
    text: str,
    font_size: int,
    font_color: Color,
    content_size: Size,
    border_thickness: int,
    padding: int,
    content_position: Point | None = None,
    font_name: str = "",
) -> Image.Image:
    """캔버스에 캡션을 그린다."""
    layout = Layout(content_size, border_thickness, padding, content_position)
    return layout.draw(canvas, CaptionSpec(text, font_size, font_color, font_name))

"""캡션 레이아웃 테스트 — 기준점 계산, 폰트 로드 체인, 폴백 렌더러."""

import logging
from types import MappingProxyType

import pytest
from PIL import Image, ImageChops, ImageDraw, ImageFont

from errors import FontLoadFailure, FontRenderFailure
from renderer import layout, text
from renderer.canvas import Point, Size
from renderer.layout import CaptionSpec, Layout, compute_anchor, draw_caption

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255)


def _blank(w, h):
    return Image.new("RGB", (w, h), WHITE)


def _no_fonts(monkeypatch):
    def no_builtin(size):
        raise FontLoadFailure("내장 폰트 없음")

    monkeypatch.setattr(text, "_REGISTRY", MappingProxyType({}))
    monkeypatch.setattr(text, "_open_builtin", no_builtin)


def _freetype_default(size):
    font = ImageFont.load_default(size)
    if not isinstance(font, ImageFont.FreeTypeFont):
        pytest.skip("FreeType 지원 없는 Pillow")
    return font


# --- 기준점 계산 ---

def test_solid_anchor_with_empty_text_width():
    anchor = compute_anchor(Size(0, 50), Size(800, 600), 20, 150, None)
    margin = 170
    assert anchor.x == margin + 800 // 2
    assert anchor.y == margin + 600 + (margin - 50) // 2 + 50


def test_instagram_anchor():
    anchor = compute_anchor(Size(100, 24), Size(1000, 750), 5, 0, Point(40, 300))
    assert anchor == Point(40 + 450, 300 + 750 + 5 + 24)


def test_anchor_truncates_negative_offsets():
    # 텍스트가 콘텐츠보다 넓으면 (10 - 15) / 2 → -2
    anchor = compute_anchor(Size(15, 10), Size(10, 10), 0, 0, None)
    assert anchor.x == -2
    anchor = compute_anchor(Size(15, 10), Size(10, 10), 0, 0, Point(100, 0))
    assert anchor.x == 98


def test_solid_anchor_line_taller_than_margin():
    # (margin - lineHeight) = -7 → -3
    anchor = compute_anchor(Size(0, 12), Size(100, 100), 5, 0, None)
    assert anchor.y == 5 + 100 - 3 + 12


def test_layout_anchor_for_matches_function():
    lay = Layout(Size(640, 480), 20, 150)
    assert lay.anchor_for(Size(30, 40)) == compute_anchor(Size(30, 40), Size(640, 480), 20, 150, None)


# --- 폰트 로드 체인 ---

def test_missing_fonts_raise_load_failure(monkeypatch):
    _no_fonts(monkeypatch)
    with pytest.raises(FontLoadFailure):
        text.load_font("AmericanTypewriter", 20)


def test_named_font_falls_back_to_default(monkeypatch):
    sentinel = object()

    def fake_open(name, size):
        if name == text.DEFAULT_FONT:
            return sentinel
        raise FontLoadFailure(name)

    monkeypatch.setattr(text, "_open_font", fake_open)
    assert text.load_font("NoSuchFont", 12) is sentinel
    assert text.load_font("", 12) is sentinel


def test_corrupt_font_asset(monkeypatch):
    _no_fonts(monkeypatch)
    monkeypatch.setattr(text, "_REGISTRY", MappingProxyType({text.DEFAULT_FONT: b"definitely not a font"}))
    with pytest.raises(FontLoadFailure, match="파싱"):
        text.load_font(text.DEFAULT_FONT, 20)


def test_builtin_font_ends_the_chain(monkeypatch):
    expected = _freetype_default(20)
    monkeypatch.setattr(text, "_REGISTRY", MappingProxyType({}))
    font = text.load_font("AmericanTypewriter", 20)
    assert isinstance(font, ImageFont.FreeTypeFont)
    assert font.getmetrics() == expected.getmetrics()


def test_first_success_stops_at_first_result():
    calls = []

    def failing():
        calls.append("fail")
        raise FontLoadFailure("x")

    def ok():
        calls.append("ok")
        return "font"

    def never():
        calls.append("never")
        return "other"

    assert text.first_success([failing, ok, never]) == "font"
    assert calls == ["fail", "ok"]


def test_list_fonts_default_first():
    fonts = text.list_fonts()
    assert fonts[0] == text.DEFAULT_FONT
    assert len(fonts) == 4


# --- 실제 폰트 경로 ---

def test_measure_text_rounds_up_advances():
    font = _freetype_default(20)
    size = text.measure_text("- JUN '23 -", font)
    expected = sum(font.getlength(ch) for ch in "- JUN '23 -")
    assert size.width >= expected
    assert size.width - expected < 1
    ascent, descent = font.getmetrics()
    assert size.height == ascent + descent


def test_caption_without_bundled_fonts_is_shaped(monkeypatch, caplog):
    _freetype_default(20)
    monkeypatch.setattr(text, "_REGISTRY", MappingProxyType({}))
    canvas = _blank(100 + 2 * 60, 80 + 2 * 60)
    with caplog.at_level(logging.WARNING):
        draw_caption(canvas, "Hello", 20, BLACK, Size(100, 80), 10, 50)

    assert "폴백" not in caplog.text
    bbox = ImageChops.difference(canvas, _blank(*canvas.size)).getbbox()
    assert bbox is not None
    assert bbox[1] >= 60 + 80
    # 글자 모양으로 그리므로 폴백 사각형처럼 꽉 찬 영역이 아니다
    region = canvas.crop(bbox).convert("L")
    lo, hi = region.getextrema()
    assert lo < 128 < hi


def test_shaped_caption_drawn_in_bottom_band(monkeypatch):
    monkeypatch.setattr(text, "_open_font", lambda name, size: _freetype_default(size))
    canvas = _blank(100 + 2 * 60, 80 + 2 * 60)
    out = draw_caption(canvas, "Hello", 20, BLACK, Size(100, 80), 10, 50)

    assert out is canvas
    bbox = ImageChops.difference(canvas, _blank(*canvas.size)).getbbox()
    assert bbox is not None
    assert bbox[1] >= 60 + 80


# --- 폴백 렌더러 ---

def test_spaces_only_draw_nothing(monkeypatch):
    _no_fonts(monkeypatch)
    canvas = _blank(300, 300)
    out = draw_caption(canvas, "     ", 40, BLACK, Size(200, 200), 10, 40)
    assert out is canvas
    assert canvas.size == (300, 300)
    assert ImageChops.difference(canvas, _blank(300, 300)).getbbox() is None


def test_fallback_blocks(monkeypatch, caplog):
    _no_fonts(monkeypatch)
    canvas = _blank(160, 160)
    with caplog.at_level(logging.WARNING):
        draw_caption(canvas, "AB", 20, BLACK, Size(100, 100), 10, 20)
    assert "폴백" in caplog.text

    # 셀 10px, 글자 폭 8px, 텍스트 폭 20 → x = 30 + 40, y = 30 + 100 + 5 + 20
    x, y = 70, 155
    top = y - 10
    assert canvas.getpixel((x, top)) == (0, 0, 0)
    assert canvas.getpixel((x + 7, y)) == (0, 0, 0)
    assert canvas.getpixel((x + 8, y)) == WHITE
    assert canvas.getpixel((x + 10, y)) == (0, 0, 0)
    assert canvas.getpixel((x - 1, y)) == WHITE
    assert canvas.getpixel((x, top - 1)) == WHITE


def test_fallback_dash_and_apostrophe():
    canvas = _blank(100, 100)
    draw = ImageDraw.Draw(canvas)
    text.draw_fallback(draw, Point(10, 50), "-'", 20, (0, 0, 0))

    # '-' : y-2 ~ y+2 가로 막대
    assert canvas.getpixel((10, 50)) == (0, 0, 0)
    assert canvas.getpixel((17, 52)) == (0, 0, 0)
    assert canvas.getpixel((10, 47)) == WHITE
    assert canvas.getpixel((10, 53)) == WHITE

    # "'" : 셀 가운데 1/3 폭, 위쪽 1/3 높이
    cx, top = 20, 40
    assert canvas.getpixel((cx + 3, top)) == (0, 0, 0)
    assert canvas.getpixel((cx + 3, top + 5)) == (0, 0, 0)
    assert canvas.getpixel((cx + 3, top + 6)) == WHITE
    assert canvas.getpixel((cx, top)) == WHITE
    assert canvas.getpixel((cx + 5, top)) == WHITE


def test_fallback_clips_outside_canvas():
    canvas = _blank(20, 20)
    draw = ImageDraw.Draw(canvas)
    text.draw_fallback(draw, Point(-30, 150), "XXXXXXXX", 40, (0, 0, 0))
    assert canvas.size == (20, 20)


def test_fallback_tiny_font_is_noop():
    canvas = _blank(20, 20)
    text.draw_fallback(ImageDraw.Draw(canvas), Point(5, 10), "abc", 2, (0, 0, 0))
    assert ImageChops.difference(canvas, _blank(20, 20)).getbbox() is None


def test_fallback_measurement():
    assert text.measure_fallback(" - JUN '23 -", 50) == Size(12 * 25, 50)


def test_render_failure_uses_fallback(monkeypatch, caplog):
    monkeypatch.setattr(layout, "load_font", lambda name, size: object())
    monkeypatch.setattr(layout, "measure_text", lambda s, font: Size(0, 10))

    def broken(*args, **kwargs):
        raise FontRenderFailure("boom")

    monkeypatch.setattr(layout, "draw_text", broken)
    canvas = _blank(160, 160)
    with caplog.at_level(logging.WARNING):
        Layout(Size(100, 100), 10, 20).draw(canvas, CaptionSpec("A", 20, BLACK))
    assert "boom" in caplog.text
    assert canvas.getpixel((30 + 45, 155)) == (0, 0, 0)


def test_instagram_fallback_position(monkeypatch):
    _no_fonts(monkeypatch)
    canvas = _blank(1080, 1350)
    draw_caption(canvas, "X", 20, BLACK, Size(1000, 750), 5, 0, Point(40, 300))
    # 폭 10 → x = 40 + 495, y = 300 + 750 + 5 + 20
    assert canvas.getpixel((535, 1075)) == (0, 0, 0)
    assert canvas.getpixel((534, 1075)) == WHITE

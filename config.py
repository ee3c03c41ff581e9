"""설정 로더 모듈 — 기본값, JSON 설정 파일, 명령줄 옵션을 병합한다."""

import json
from dataclasses import dataclass
from pathlib import Path

from renderer.canvas import BorderStyle
from renderer.color import Color, parse_hex_color

# 기본 설정 경로
_CONFIG_PATH = Path(__file__).parent / "config.json"

# 기본값 — config.json에 누락된 키가 있을 때 사용
_DEFAULTS = {
    "border_style": "solid",
    "border_color": "#000000",
    "font_color": "#000000",
    "font_name": "",
    "caption": "",
    "workers": 1,
    # 스타일별 기본값 — 명령줄에서 지정하지 않았을 때만 적용
    "styles": {
        "instagram": {
            "border_thickness": "5",
            "padding": 0,
            "font_size": 20,
            "instagram_max_size": 1000,
        },
        "solid": {
            "border_thickness": "20",
            "padding": 150,
            "font_size": 50,
            "instagram_max_size": 900,
        },
    },
}

_STYLE_KEYS = ("border_thickness", "padding", "font_size", "instagram_max_size")


@dataclass(frozen=True)
class FrameSettings:
    """파일 하나를 처리하는 데 필요한 확정된 설정.

    font_size가 None이면 테두리 두께에서 글자 크기를 유도한다.
    """
    style: BorderStyle
    border_thickness: str
    padding: int
    border_color: Color
    font_color: Color
    font_name: str = ""
    font_size: int | None = None
    caption: str = ""
    instagram_max_size: int = 900


def _deep_merge(base: dict, override: dict) -> dict:
    """base 딕셔너리에 override 값을 병합한다 (깊은 병합)."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: Path | None = None) -> dict:
    """설정 파일을 읽어 딕셔너리로 반환한다.

    파일이 없으면 기본값을 사용한다.
    """
    config_path = path or _CONFIG_PATH
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            user_config = json.load(f)
        return _deep_merge(_DEFAULTS, user_config)
    return _deep_merge(_DEFAULTS, {})


def resolve_thickness(value: str | int, size: tuple[int, int]) -> int:
    """테두리 두께를 픽셀로 변환한다. "N%"는 짧은 변 기준 비율이다."""
    text = str(value).strip()
    try:
        if text.endswith("%"):
            percentage = float(text[:-1])
            thickness = int(min(size) * (percentage / 100.0))
        else:
            thickness = int(text)
    except OverflowError as e:
        raise ValueError(f"테두리 두께 값이 너무 큽니다: {value!r}") from e
    if thickness < 0:
        raise ValueError(f"테두리 두께는 0 이상이어야 합니다: {value!r}")
    return thickness


def build_settings(config: dict, overrides: dict | None = None) -> FrameSettings:
    """설정과 명령줄 값(None은 미지정)을 합쳐 FrameSettings를 만든다.

    Raises:
        InvalidColorFormat: 테두리/글자 색상이 잘못되었을 때
        ValueError: 패딩, 두께, 최대 크기 값이 잘못되었을 때
    """
    given = {k: v for k, v in (overrides or {}).items() if v is not None}
    merged = _deep_merge(config, given)

    style = BorderStyle.parse(merged["border_style"])
    style_defaults = merged["styles"].get(style.value, {})
    for key in _STYLE_KEYS:
        if key not in given:
            merged[key] = style_defaults.get(key)

    # 퍼센트 두께는 이미지마다 다시 계산하지만 형식은 미리 검사한다
    resolve_thickness(merged["border_thickness"], (100, 100))
    if int(merged["padding"]) < 0:
        raise ValueError(f"패딩은 0 이상이어야 합니다: {merged['padding']}")
    if int(merged["instagram_max_size"]) <= 0:
        raise ValueError(f"instagram_max_size는 양수여야 합니다: {merged['instagram_max_size']}")

    font_size = merged["font_size"]
    return FrameSettings(
        style=style,
        border_thickness=str(merged["border_thickness"]),
        padding=int(merged["padding"]),
        border_color=parse_hex_color(merged["border_color"]),
        font_color=parse_hex_color(merged["font_color"]),
        font_name=merged["font_name"] or "",
        font_size=int(font_size) if font_size is not None else None,
        caption=merged["caption"] or "",
        instagram_max_size=int(merged["instagram_max_size"]),
    )

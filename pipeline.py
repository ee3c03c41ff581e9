"""일괄 처리 모듈 — 파일/디렉토리를 순회하며 프레임 + 캡션 이미지를 만든다."""

import logging
import os
import stat
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path

from PIL import Image

from config import FrameSettings, resolve_thickness
from content.caption import resolve_caption
from errors import FramerError, ImageDecodeFailure, ImageEncodeFailure, PathAccessFailure
from renderer.canvas import BorderStyle, compose
from renderer.layout import draw_caption

logger = logging.getLogger(__name__)

JPEG_EXTENSIONS = (".jpg", ".jpeg")
JPEG_QUALITY = 100


@dataclass
class BatchReport:
    """일괄 처리 결과."""
    processed: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.processed) + len(self.failed)


def font_size_for_thickness(thickness: int) -> int:
    """테두리 두께 구간별로 글자 크기를 정한다."""
    if thickness < 40:
        return int(thickness * 0.5)
    if thickness < 80:
        return int(thickness * 0.7)
    return int(thickness * 0.9)


def output_path_for(source: Path, output_dir: Path, style: BorderStyle) -> Path:
    """<원본 이름>_framed.jpg 또는 <원본 이름>_instagram.jpg."""
    return output_dir / f"{source.stem}{style.suffix}.jpg"


def _read_source(path: Path) -> tuple[bytes, Image.Image]:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise PathAccessFailure(f"파일 열기 실패 {path}: {e}") from e
    try:
        with Image.open(BytesIO(data), formats=("JPEG",)) as im:
            im.load()
            return data, im.convert("RGB")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeFailure(f"JPEG 디코딩 실패 {path}: {e}") from e


def _write_jpeg(image: Image.Image, out_path: Path) -> None:
    """메모리에서 먼저 인코딩하므로 실패해도 출력 파일이 남지 않는다."""
    buf = BytesIO()
    try:
        image.save(buf, format="JPEG", quality=JPEG_QUALITY)
    except (OSError, ValueError) as e:
        raise ImageEncodeFailure(f"JPEG 인코딩 실패 {out_path}: {e}") from e
    try:
        out_path.write_bytes(buf.getvalue())
    except OSError as e:
        raise PathAccessFailure(f"출력 파일 생성 실패 {out_path}: {e}") from e


def process_image(path: Path, output_dir: Path, settings: FrameSettings) -> Path:
    """이미지 한 장을 처리하여 출력 경로를 반환한다.

    Raises:
        PathAccessFailure, ImageDecodeFailure, ImageEncodeFailure,
        FrameGeometryError (인스타그램 캔버스에 테두리가 들어가지 않을 때)
    """
    path = Path(path)
    data, image = _read_source(path)
    caption = resolve_caption(settings.caption, data)

    thickness = resolve_thickness(settings.border_thickness, image.size)

    result = compose(
        image,
        settings.style,
        thickness,
        settings.border_color,
        settings.padding,
        settings.instagram_max_size,
    )

    canvas = result.canvas
    if caption:
        font_size = settings.font_size
        if font_size is None:
            font_size = font_size_for_thickness(thickness)
        canvas = draw_caption(
            canvas,
            caption,
            font_size,
            settings.font_color,
            result.resized_size,
            thickness,
            settings.padding,
            result.image_position,
            settings.font_name,
        )

    out_path = output_path_for(path, Path(output_dir), settings.style)
    _write_jpeg(canvas, out_path)
    logger.info("처리 완료: '%s' -> '%s'", path, out_path)
    return out_path


def iter_jpegs(root: Path) -> Iterator[Path]:
    """디렉토리를 재귀 탐색하여 .jpg/.jpeg 파일을 정렬된 순서로 내보낸다.

    Raises:
        PathAccessFailure: 디렉토리 탐색 중 오류 (일괄 처리 전체 중단)
    """
    def _on_error(err: OSError):
        raise PathAccessFailure(f"디렉토리 탐색 실패: {err}") from err

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        for name in sorted(filenames):
            if os.path.splitext(name)[1].lower() in JPEG_EXTENSIONS:
                yield Path(dirpath) / name


def _process_safely(path: Path, output_dir: Path, settings: FrameSettings) -> Path | None:
    """파일 단위 실패는 기록만 하고 None을 반환한다."""
    try:
        return process_image(path, output_dir, settings)
    except FramerError as e:
        logger.error("건너뜀 %s: %s", path, e)
        return None


def run_batch(input_path: Path, output_dir: Path, settings: FrameSettings,
              workers: int = 1) -> BatchReport:
    """파일 하나 또는 디렉토리 전체를 처리한다.

    Raises:
        PathAccessFailure: 출력 디렉토리 생성, 입력 경로 확인, 디렉토리 탐색 실패
    """
    input_path = Path(input_path)
    output_dir = Path(output_dir)

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PathAccessFailure(f"출력 디렉토리를 만들 수 없음 {output_dir}: {e}") from e

    try:
        mode = input_path.stat().st_mode
    except OSError as e:
        raise PathAccessFailure(f"입력 경로에 접근할 수 없음 {input_path}: {e}") from e

    files = list(iter_jpegs(input_path)) if stat.S_ISDIR(mode) else [input_path]
    logger.info("처리 대상 %d개 (workers=%d)", len(files), workers)

    report = BatchReport()
    if workers > 1 and len(files) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda p: _process_safely(p, output_dir, settings), files))
    else:
        results = [_process_safely(p, output_dir, settings) for p in files]

    for path, out in zip(files, results):
        if out is None:
            report.failed.append(path)
        else:
            report.processed.append(path)

    logger.info("완료: %d개 처리, %d개 실패", len(report.processed), len(report.failed))
    return report

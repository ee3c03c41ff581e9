"""캡션 텍스트 모듈 — 직접 지정한 캡션 또는 EXIF 촬영 날짜로 캡션을 만든다."""

import logging
from datetime import datetime
from pathlib import Path

import piexif

from errors import MetadataUnavailable

logger = logging.getLogger(__name__)

PLACEHOLDER_CAPTION = " - --- -"

# 로케일과 무관한 영문 월 약어
MONTH_NAMES = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN",
               "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]

_EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"


def caption_from_date(dt: datetime | None) -> str:
    """날짜를 " - JUN '23 -" 형식으로 변환한다."""
    if dt is None or dt == datetime.min:
        return PLACEHOLDER_CAPTION
    return f" - {MONTH_NAMES[dt.month - 1]} '{dt.year % 100:02d} -"


def read_capture_date(source: bytes | str | Path) -> datetime:
    """JPEG 파일(경로 또는 바이트)에서 촬영 날짜를 읽는다.

    DateTimeOriginal을 우선하고, 없으면 DateTime 태그를 사용한다.

    Raises:
        MetadataUnavailable: EXIF가 없거나 손상되었거나 날짜가 0일 때
    """
    if isinstance(source, Path):
        source = str(source)
    # 손상된 EXIF에서 piexif는 TypeError, MemoryError 등 다양한 예외를 낸다
    try:
        exif = piexif.load(source)
        raw = exif.get("Exif", {}).get(piexif.ExifIFD.DateTimeOriginal)
        if not raw:
            raw = exif.get("0th", {}).get(piexif.ImageIFD.DateTime)
    except Exception as e:
        raise MetadataUnavailable(f"EXIF 읽기 실패: {type(e).__name__}: {e}") from e
    if not raw:
        raise MetadataUnavailable("촬영 날짜 태그 없음")

    if isinstance(raw, bytes):
        raw = raw.decode("ascii", errors="ignore")
    if not isinstance(raw, str):
        raise MetadataUnavailable(f"촬영 날짜 태그 형식 오류: {raw!r}")
    # "0000:00:00 00:00:00" 같은 0 날짜는 여기서 걸러진다
    try:
        return datetime.strptime(raw.strip("\x00 "), _EXIF_DATE_FORMAT)
    except ValueError as e:
        raise MetadataUnavailable(f"촬영 날짜 형식 오류: {raw!r}") from e


def resolve_caption(explicit: str | None, source: bytes | str | Path) -> str:
    """캡션 텍스트를 결정한다: 직접 지정 > EXIF 날짜 > 자리표시자."""
    if explicit:
        return explicit
    try:
        return caption_from_date(read_capture_date(source))
    except MetadataUnavailable as e:
        logger.debug("촬영 날짜 없음, 자리표시자 사용: %s", e)
        return PLACEHOLDER_CAPTION

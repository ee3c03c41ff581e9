"""메인 진입점 — JPEG 사진에 테두리와 캡션을 붙인다."""

import argparse
import logging
import sys
from pathlib import Path

from config import build_settings, load_config
from errors import PathAccessFailure
from pipeline import run_batch
from renderer.text import list_fonts

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(message)s")
logging.getLogger("PIL").setLevel(logging.WARNING)

logger = logging.getLogger("framer")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="framer", description="JPEG 사진에 테두리와 캡션을 추가한다.")
    ap.add_argument("-i", "--input", help="JPEG 파일 또는 JPEG 파일이 들어 있는 폴더")
    ap.add_argument("-o", "--output", help="결과 이미지를 저장할 폴더")
    ap.add_argument("-t", "--border-thickness", dest="border_thickness",
                    help="테두리 두께 (픽셀 또는 '10%%' 같은 비율)")
    ap.add_argument("-s", "--border-style", dest="border_style",
                    help="테두리 스타일: solid 또는 instagram (4:5, 1080x1350)")
    ap.add_argument("--border-color", dest="border_color", help="테두리 색상 (기본 #000000)")
    ap.add_argument("--caption", help="캡션 텍스트 (생략하면 EXIF 촬영 날짜)")
    ap.add_argument("--font-name", dest="font_name", help="캡션 폰트 이름")
    ap.add_argument("--font-size", dest="font_size", type=int, help="글자 크기 (픽셀)")
    ap.add_argument("--font-color", dest="font_color", help="글자 색상 (기본 #000000)")
    ap.add_argument("--instagram-max-size", dest="instagram_max_size", type=int,
                    help="인스타그램 스타일에서 이미지 최대 가로/세로")
    ap.add_argument("--padding", type=int, help="테두리 바깥 흰 여백 (픽셀)")
    ap.add_argument("--list-fonts", action="store_true", help="사용 가능한 폰트를 출력하고 종료")
    ap.add_argument("--config", type=Path, help="JSON 설정 파일 경로")
    ap.add_argument("--workers", type=int, help="동시에 처리할 파일 수")
    ap.add_argument("-v", "--verbose", action="store_true", help="디버그 로그 출력")
    return ap


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.list_fonts:
        print("Available fonts:")
        for name in list_fonts():
            print("  -", name)
        return 0

    if not args.input or not args.output:
        parser.print_usage(sys.stderr)
        logger.error("입력 경로와 출력 경로가 필요합니다.")
        return 2

    overrides = {
        key: getattr(args, key)
        for key in ("border_style", "border_thickness", "border_color", "caption",
                    "font_name", "font_size", "font_color", "instagram_max_size", "padding")
    }
    try:
        config = load_config(args.config)
        settings = build_settings(config, overrides)
    except ValueError as e:
        logger.error("설정 오류: %s", e)
        return 2

    workers = args.workers if args.workers is not None else int(config.get("workers", 1))
    try:
        run_batch(Path(args.input), Path(args.output), settings, workers=max(1, workers))
    except PathAccessFailure as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logging.info("종료")

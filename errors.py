"""오류 분류 모듈 — 파이프라인 단계별 예외."""


class FramerError(Exception):
    """모든 프레임 처리 오류의 기반 클래스."""


class InvalidColorFormat(FramerError, ValueError):
    """6자리 16진수 색상 문자열이 아님."""


class FontLoadFailure(FramerError):
    """번들 폰트가 없거나 파싱할 수 없음."""


class FontRenderFailure(FramerError):
    """폰트로 캡션을 그리는 중 실패."""


class MetadataUnavailable(FramerError):
    """촬영 날짜 메타데이터가 없거나 손상됨."""


class ImageDecodeFailure(FramerError):
    pass


class ImageEncodeFailure(FramerError):
    pass


class PathAccessFailure(FramerError):
    """파일/디렉토리 열기·생성·탐색 실패."""


class FrameGeometryError(FramerError, ValueError):
    """테두리와 패딩이 고정 캔버스 안에 들어가지 않음."""

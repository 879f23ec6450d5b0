import logging
import sys


def setup_logging(level: str = "INFO") -> logging.Logger:
    """루트 로거 설정 (콘솔 출력)"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    # 외부 라이브러리 로그는 한 단계 낮춤
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("eversoul")

import logging
from typing import Any, Optional
import httpx
import orjson

from eversoul.core.config import GAMEDATA_ORIGIN, USER_AGENT, DataSource

logger = logging.getLogger(__name__)


class GameDataError(Exception):
    """원격 마스터 데이터 처리 중 발생한 오류의 공통 부모"""

class GameDataFetchError(GameDataError):
    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status_code = status_code
        if status_code is not None:
            message = f"HTTP {status_code}: {reason} - URL: {url}"
        else:
            message = f"요청 실패: {reason} - URL: {url}"
        super().__init__(message)

class GameDataParseError(GameDataError):
    def __init__(self, url: str, reason: str = ""):
        self.url = url
        super().__init__(f"JSON 파싱 실패: {reason} - URL: {url}")


def source_value(source) -> str:
    """DataSource / 문자열 어느 쪽이 와도 'live' 같은 원시 값으로 통일"""
    if isinstance(source, DataSource):
        return source.value
    return str(source)


def normalize_payload(data: Any) -> Any:
    """{"json": [...]} 형태로 감싸진 응답이면 배열만 꺼낸다"""
    if isinstance(data, dict) and isinstance(data.get("json"), list):
        return data["json"]
    return data


class TableFetcher:
    """
    원격 저장소에서 테이블(JSON 배열) 하나를 내려받음
    - 재시도 없음: 재시도/건너뛰기 판단은 호출하는 쪽(갱신 작업)의 몫
    """

    def __init__(self, client: httpx.AsyncClient, origin: str = GAMEDATA_ORIGIN):
        self.client = client
        self.origin = origin.rstrip("/")

    def url_for(self, source, table: str) -> str:
        return f"{self.origin}/{source_value(source)}/{table}.json"

    async def fetch(self, source, table: str) -> Any:
        url = self.url_for(source, table)
        logger.info(f"🌐 Fetching {url}")

        try:
            response = await self.client.get(
                url,
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
            )
        except httpx.HTTPError as e:
            raise GameDataFetchError(url, reason=str(e)) from e

        if not response.is_success:
            raise GameDataFetchError(url, response.status_code, response.reason_phrase)

        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise GameDataParseError(url, str(e)) from e

        data = normalize_payload(data)
        if isinstance(data, list):
            logger.debug(f"{table}: {len(data)} rows")
        return data

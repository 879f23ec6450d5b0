from typing import List, Optional, Union
import orjson
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from eversoul.schemas.common import RowSchema

STAGE_ITEM_SLOTS = 9
TEAM_HERO_SLOTS = 5

# 번들 속성명 -> 원격 파일명 (로드 순서 고정)
TABLE_FILES = {
    "stage": "Stage",
    "stage_battle": "StageBattle",
    "string_system": "StringSystem",
    "string_item": "StringItem",
    "string_character": "StringCharacter",
    "string_cashshop": "StringCashshop",
    "string_ui": "StringUI",
    "item": "Item",
    "item_drop_group": "ItemDropGroup",
    "hero": "Hero",
    "formation": "Formation",
    "cash_shop_item": "CashShopItem",
    "key_values": "KeyValues",
    "hero_grade": "HeroGrade",
    "hero_level_grade": "HeroLevelGrade",
}


# ==========================
# 1. 슬롯 (번호 붙은 컬럼 묶음)
# ==========================
class ItemSlot(RowSchema):
    item_no: Optional[int] = None
    amount: Optional[int] = None

class HeroSlot(RowSchema):
    position: int
    hero_no: Optional[int] = None
    grade: Optional[int] = None
    level: Optional[int] = None

    @property
    def occupied(self) -> bool:
        return bool(self.hero_no)


# ==========================
# 2. 테이블 행
# ==========================
class Stage(RowSchema):
    no: int = 0
    area_no: int = 0
    stage_no: int = 0
    stage_type: int = 0
    level_type: Optional[int] = None
    exp: int = 0
    item_drop_group_no: Optional[int] = None
    # item_no_1..9 / amount_1..9
    fixed_drops: List[ItemSlot] = []

    @model_validator(mode="before")
    @classmethod
    def _collect_item_slots(cls, data):
        if isinstance(data, dict) and "fixed_drops" not in data:
            data = dict(data)
            data["fixed_drops"] = [
                {"item_no": data.get(f"item_no_{i}"), "amount": data.get(f"amount_{i}")}
                for i in range(1, STAGE_ITEM_SLOTS + 1)
            ]
        return data

class StageBattle(RowSchema):
    no: int = 0
    team_no: int = 0
    formation_type: int = 0
    # hero_no_1..5 / hero_grade_1..5 / level_1..5
    heroes: List[HeroSlot] = []

    @model_validator(mode="before")
    @classmethod
    def _collect_hero_slots(cls, data):
        if isinstance(data, dict) and "heroes" not in data:
            data = dict(data)
            data["heroes"] = [
                {
                    "position": i,
                    "hero_no": data.get(f"hero_no_{i}"),
                    "grade": data.get(f"hero_grade_{i}"),
                    "level": data.get(f"level_{i}"),
                }
                for i in range(1, TEAM_HERO_SLOTS + 1)
            ]
        return data

class StringData(RowSchema):
    no: int = 0
    zh_tw: str = ""
    zh_cn: str = ""
    kr: str = ""
    en: str = ""
    ja: str = ""
    ko: str = ""

class Item(RowSchema):
    no: int = 0
    name_sno: Optional[int] = None

class ItemDropGroup(RowSchema):
    """같은 no(그룹 ID)를 공유하는 여러 행이 하나의 드랍 그룹을 이룸"""
    no: int = 0
    item_no: Optional[int] = None
    amount: int = 0
    drop_rate: int = 0  # 1000 = 1%

class Hero(RowSchema):
    no: int = 0
    name_sno: Optional[int] = None

class Formation(RowSchema):
    """진형 이름은 고정 매핑(resolvers.FORMATION_TYPE_MAPPING)으로 풀기 때문에 번호만 보관"""
    no: int = 0

class CashShopItem(RowSchema):
    no: int = 0
    type: str = ""
    type_value: Optional[str] = None
    name_sno: Optional[int] = None
    item_info_sno: Optional[int] = None
    desc_sno: Optional[int] = None
    limit_buy: Optional[int] = None
    limit_hour: Optional[int] = None
    item_infos: Optional[str] = None
    price_krw: Optional[Union[int, float]] = None
    price_other: Optional[Union[int, float]] = None

    @field_validator("item_infos", mode="before")
    @classmethod
    def _serialize_item_infos(cls, v):
        # 일부 덤프는 문자열 대신 중첩 리스트로 내려온다
        if isinstance(v, (list, tuple)):
            return orjson.dumps(v).decode()
        return v

    @field_validator("price_krw", "price_other", mode="before")
    @classmethod
    def _integral_price(cls, v):
        # 100.0 -> 100 (표시용 가격은 정수로)
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v

class KeyValue(RowSchema):
    no: int = 0
    key_name: str = ""
    values_data: str = ""

class HeroGrade(RowSchema):
    no: int = 0
    name_sno: Optional[int] = None
    hero_grade_value: Optional[float] = None

class HeroLevelGrade(RowSchema):
    no: int = 0
    level: int = 0
    value: Optional[float] = None


# ==========================
# 3. 번들 (데이터 소스 1개의 전체 스냅샷)
# ==========================
class GameDataBundle(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: Optional[str] = None
    stage: List[Stage] = []
    stage_battle: List[StageBattle] = []
    string_system: List[StringData] = []
    string_item: List[StringData] = []
    string_character: List[StringData] = []
    string_cashshop: List[StringData] = []
    string_ui: List[StringData] = []
    item: List[Item] = []
    item_drop_group: List[ItemDropGroup] = []
    hero: List[Hero] = []
    formation: List[Formation] = []
    cash_shop_item: List[CashShopItem] = []
    key_values: List[KeyValue] = []
    hero_grade: List[HeroGrade] = []
    hero_level_grade: List[HeroLevelGrade] = []

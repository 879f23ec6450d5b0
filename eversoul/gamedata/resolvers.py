"""
번들 위에서 동작하는 조회/현지화 함수 모음
찾지 못하면 예외 대신 빈 기본값을 돌려준다.
"""
from typing import Iterable, Optional, TypeVar

from eversoul.schemas.gamedata import GameDataBundle, StringData

RowT = TypeVar("RowT")

FORMATION_TYPE_MAPPING = {
    1: "基本阵型",
    2: "狙击型",
    3: "防守阵型",
    4: "突击型",
}


def find_by_no(rows: Iterable[RowT], no: Optional[int]) -> Optional[RowT]:
    if no is None:
        return None
    return next((row for row in rows if row.no == no), None)


def empty_string(no: Optional[int]) -> StringData:
    return StringData(no=no)


def get_string_by_type(bundle: GameDataBundle, string_type: str, no: Optional[int]) -> StringData:
    """string_{string_type} 테이블에서 no로 조회 (system/item/character/cashshop/ui)"""
    table = getattr(bundle, f"string_{string_type}", None)
    if table is None:
        return empty_string(no)
    return find_by_no(table, no) or empty_string(no)


def get_item_name(bundle: GameDataBundle, item_no: Optional[int]) -> StringData:
    # Item.no -> Item.name_sno -> StringItem
    item = find_by_no(bundle.item, item_no)
    if item is not None and item.name_sno:
        found = find_by_no(bundle.string_item, item.name_sno)
        if found is not None:
            return found
    return empty_string(item_no)


def get_character_name(bundle: GameDataBundle, hero_no: Optional[int], special: bool = False) -> StringData:
    """
    special=True 이면 Hero.name_sno 를 한 번 거쳐서 이름을 찾는다
    (name_sno 가 비어 있으면 hero_no 자체를 키로 사용)
    """
    name_sno = hero_no
    if special:
        hero = find_by_no(bundle.hero, hero_no)
        if hero is not None:
            name_sno = hero.name_sno or hero_no

    return find_by_no(bundle.string_character, name_sno) or empty_string(hero_no)


def get_formation_type(formation_type: Optional[int]) -> str:
    return FORMATION_TYPE_MAPPING.get(formation_type, "")

import logging
import re
from typing import Dict, List, Optional, Tuple

from eversoul.gamedata.battle_power import calculate_battle_power
from eversoul.gamedata.cache import TableCache
from eversoul.gamedata.loader import load_bundle
from eversoul.gamedata.resolvers import (
    get_character_name,
    get_formation_type,
    get_item_name,
    get_string_by_type,
)
from eversoul.schemas.gamedata import GameDataBundle, Stage
from eversoul.schemas.stage import BattleTeam, DropItem, FixedItem, StageDetails, TeamHero

logger = logging.getLogger(__name__)

MONSTER_ENTITY_TYPE = 2
UNKNOWN_TEXT = "？？？"
SEPARATOR = "-" * 25

PACKAGE_TYPE_MAPPING = {
    "barrier": "通关礼包",
    "stage": "主线礼包",
    "tower": "起源之塔礼包",
    "grade_eternal": "角色升阶礼包",
}
DEFAULT_PACKAGE_TYPE = "特殊礼包"
LEADING_INT = re.compile(r"\s*[+-]?\d+")


def find_stage(bundle: GameDataBundle, area_no: int, stage_no: int) -> Optional[Stage]:
    return next(
        (s for s in bundle.stage if s.area_no == area_no and s.stage_no == stage_no),
        None,
    )


def get_level_type(bundle: GameDataBundle, stage: Stage) -> str:
    if not stage.level_type:
        return ""
    for row in bundle.string_system:
        if row.no == stage.level_type:
            return row.zh_tw or "未知类型"
    return ""


def get_fixed_items(bundle: GameDataBundle, stage: Stage) -> List[FixedItem]:
    return [
        FixedItem(name=get_item_name(bundle, slot.item_no).zh_tw, amount=slot.amount or 0)
        for slot in stage.fixed_drops
        if slot.item_no
    ]


def process_battle_teams(bundle: GameDataBundle, stage_global_no: int) -> List[BattleTeam]:
    """
    StageBattle 은 (area_no, stage_no) 가 아니라 Stage.no 로 묶인다
    팀 전투력 = 첫 번째 출전 위치의 몬스터 전투력 x 출전 인원수
    """
    teams = sorted(
        (b for b in bundle.stage_battle if b.no == stage_global_no),
        key=lambda b: b.team_no,
    )

    results = []
    for team in teams:
        occupied = [slot for slot in team.heroes if slot.occupied]

        heroes = []
        for slot in occupied:
            name = get_character_name(bundle, slot.hero_no, special=True).zh_tw
            grade = get_string_by_type(bundle, "system", slot.grade).zh_tw
            heroes.append(TeamHero(
                position=slot.position,
                name=name or "未知英雄",
                grade=grade or "未知品质",
                level=slot.level or 0,
            ))

        battle_power = None
        if occupied and occupied[0].grade and occupied[0].level:
            first = occupied[0]
            single = calculate_battle_power(bundle, MONSTER_ENTITY_TYPE, first.level, first.grade)
            battle_power = single * len(occupied)

        results.append(BattleTeam(
            team_no=team.team_no,
            formation_type=get_formation_type(team.formation_type),
            heroes=heroes,
            battle_power=battle_power,
        ))
    return results


def get_drop_item_rate(bundle: GameDataBundle, group_no: Optional[int]) -> List[DropItem]:
    """
    드랍 그룹 -> 아이템 이름별로 확률이 가장 높은 항목만 남기고 확률 내림차순 정렬
    drop_rate 1000 = 1%
    """
    if not group_no:
        return []

    best: Dict[str, DropItem] = {}
    for row in bundle.item_drop_group:
        if row.no != group_no or not row.item_no:
            continue
        drop = DropItem(
            item_name=get_item_name(bundle, row.item_no),
            amount=row.amount,
            rate=row.drop_rate * 0.001,
        )
        name = drop.item_name.zh_tw
        # 동률이면 먼저 나온 항목 유지
        if name not in best or drop.rate > best[name].rate:
            best[name] = drop

    return sorted(best.values(), key=lambda d: d.rate, reverse=True)


def _leading_int(token: str) -> int:
    """앞부분 정수만 읽음 ('7.0' -> 7, ' 12 ' -> 12). 숫자로 시작하지 않으면 ValueError"""
    match = LEADING_INT.match(token)
    if match is None:
        raise ValueError(f"not an integer: {token!r}")
    return int(match.group())


def parse_item_infos(raw: Optional[str]) -> List[Tuple[int, int]]:
    """'[[item_no,amount],[item_no,amount]]' -> [(item_no, amount), ...]"""
    if not raw:
        return []
    tokens = re.sub(r"[\[\]]", "", raw).split(",")
    pairs = []
    for i in range(0, len(tokens) - 1, 2):
        try:
            pairs.append((_leading_int(tokens[i]), _leading_int(tokens[i + 1])))
        except ValueError:
            continue
    return pairs


def get_cash_packs(bundle: GameDataBundle, pack_type: str, stage: Stage) -> List[str]:
    package_type_name = PACKAGE_TYPE_MAPPING.get(pack_type, DEFAULT_PACKAGE_TYPE)
    shop_items = [
        item for item in bundle.cash_shop_item
        if item.type == pack_type and item.type_value == str(stage.no)
    ]

    messages = []
    for shop_item in shop_items:
        sections = [f"▼【{package_type_name}】"]

        package_name = UNKNOWN_TEXT
        if shop_item.name_sno:
            package_name = get_string_by_type(bundle, "cashshop", shop_item.name_sno).zh_tw or UNKNOWN_TEXT
        package_desc = UNKNOWN_TEXT
        if shop_item.item_info_sno:
            package_desc = get_string_by_type(bundle, "cashshop", shop_item.item_info_sno).zh_tw or UNKNOWN_TEXT
        limit_desc = UNKNOWN_TEXT
        if shop_item.desc_sno:
            limit_desc = get_string_by_type(bundle, "ui", shop_item.desc_sno).zh_tw or UNKNOWN_TEXT
        limit_desc = limit_desc.replace("{0}", str(shop_item.limit_buy or 0), 1)

        # 기본 정보
        basic_info = [f"礼包名称：{package_name}"]
        if package_desc != UNKNOWN_TEXT:
            basic_info.append(f"礼包描述：{package_desc}")
        basic_info.append(limit_desc)
        basic_info.append(f"剩余时间：{shop_item.limit_hour or 0}小时")
        sections.append("\n".join(basic_info))

        # 구성품
        contents = parse_item_infos(shop_item.item_infos)
        if contents:
            content_info = ["\n礼包内容："]
            for item_no, amount in contents:
                content_info.append(f"・{get_item_name(bundle, item_no).zh_tw}x{amount}")
            sections.append("\n".join(content_info))

        # 가격
        price_info = ["\n价格信息："]
        if shop_item.price_krw:
            price_info.append(f"・ {shop_item.price_krw}韩元")
        if shop_item.price_other:
            price_info.append(f"・ {shop_item.price_other}日元")
        sections.append("\n".join(price_info))

        sections.append(SEPARATOR)
        messages.append("\n".join(sections))

    return messages


def build_stage_details(bundle: GameDataBundle, area_no: int, stage_no: int) -> Optional[StageDetails]:
    """번들 하나로 스테이지 상세를 조립. 스테이지가 없을 때만 None"""
    stage = find_stage(bundle, area_no, stage_no)
    if stage is None:
        logger.info(f"stage not found: {area_no}-{stage_no} ({bundle.source})")
        return None

    return StageDetails(
        area_no=area_no,
        stage_no=stage_no,
        level_type=get_level_type(bundle, stage),
        exp=stage.exp,
        fixed_items=get_fixed_items(bundle, stage),
        battle_teams=process_battle_teams(bundle, stage.no),
        drop_items=get_drop_item_rate(bundle, stage.item_drop_group_no),
        cash_packs=get_cash_packs(bundle, "stage", stage),
    )


async def get_stage_details(cache: TableCache, source, area_no: int, stage_no: int) -> Optional[StageDetails]:
    bundle = await load_bundle(cache, source)
    return build_stage_details(bundle, area_no, stage_no)

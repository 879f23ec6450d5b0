import logging
import math

from eversoul.schemas.gamedata import GameDataBundle

logger = logging.getLogger(__name__)

ENTITY_PREFIXES = {
    1: "BP_hero",
    2: "BP_monster",
    3: "BP_raid",
}
DEFAULT_GRADE_VALUE = 0.85
DEFAULT_LEVEL_GRADE_VALUE = 1.0


def _parse_float(value: str) -> float:
    try:
        return float(value or "0")
    except ValueError:
        return 0.0


def get_base_battle_power(bundle: GameDataBundle, entity_type: int, level: int) -> int:
    """
    KeyValues 의 {prefix}_base / _level / _level_per 로 기본 전투력 곡선 계산
    floor(base + (level_value + level_per * level) * (level - 1))
    """
    prefix = ENTITY_PREFIXES.get(entity_type)
    if prefix is None:
        logger.debug(f"unknown entity type: {entity_type}")
        return 0

    base_value = 0.0
    level_value = 0.0
    level_per_value = 0.0

    for kv in bundle.key_values:
        if kv.key_name == f"{prefix}_base":
            base_value = _parse_float(kv.values_data)
        elif kv.key_name == f"{prefix}_level":
            level_value = _parse_float(kv.values_data)
        elif kv.key_name == f"{prefix}_level_per":
            level_per_value = _parse_float(kv.values_data)

    return math.floor(base_value + (level_value + level_per_value * level) * (level - 1))


def get_hero_grade_value(bundle: GameDataBundle, grade: int) -> float:
    for grade_info in bundle.hero_grade:
        if grade_info.name_sno == grade:
            return grade_info.hero_grade_value or DEFAULT_GRADE_VALUE
    return DEFAULT_GRADE_VALUE


def get_hero_level_grade_value(bundle: GameDataBundle, level: int) -> float:
    """
    레벨 구간별 계수 (계단 함수)
    테이블 최대 레벨 이상이면 최대 레벨 행의 값으로 고정
    """
    level_grades = sorted(bundle.hero_level_grade, key=lambda row: row.level)
    if not level_grades:
        return DEFAULT_LEVEL_GRADE_VALUE

    value = DEFAULT_LEVEL_GRADE_VALUE
    for row in level_grades:
        if row.level > level:
            break
        value = row.value or DEFAULT_LEVEL_GRADE_VALUE

    top = max(level_grades, key=lambda row: row.level)
    if level >= top.level:
        value = top.value or DEFAULT_LEVEL_GRADE_VALUE
    return value


def calculate_battle_power(
    bundle: GameDataBundle,
    entity_type: int,
    level: int,
    grade: int,
    equipment_power: float = 0,
    equipment_power_per: float = 0.0,
    signature_power_per: float = 0.0,
    contents_buff_power: float = 0.0,
    contents_buff_power_per: float = 0.0,
) -> int:
    base_power = get_base_battle_power(bundle, entity_type, level)
    grade_value = get_hero_grade_value(bundle, grade)
    level_grade_value = get_hero_level_grade_value(bundle, level)

    total_power = (
        base_power
        + (level_grade_value - 1.0) * base_power
        + (grade_value - 1.0) * base_power
        + equipment_power
        + equipment_power_per * base_power
        + signature_power_per * base_power
        + contents_buff_power
        + contents_buff_power_per * base_power
    )

    if not math.isfinite(total_power):
        return 0
    return math.floor(total_power)

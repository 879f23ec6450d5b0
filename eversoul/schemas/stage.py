from typing import Dict, List, Optional
from eversoul.schemas.common import BaseSchema
from eversoul.schemas.gamedata import StringData

# ==========================
# 1. Stage 목록 (가벼움)
# ==========================
class StageSummary(BaseSchema):
    no: int
    area_no: int
    stage_no: int
    stage_type: int
    level_type: Optional[int] = None
    exp: int = 0
    item_drop_group_no: Optional[int] = None

class StageOverviewResponse(BaseSchema):
    """live/review 두 채널을 동시에 불러온 결과. 실패한 채널은 None + 오류 메시지"""
    live: Optional[List[StageSummary]] = None
    review: Optional[List[StageSummary]] = None
    errors: Dict[str, str] = {}

# ==========================
# 2. Stage 상세 (조립 결과)
# ==========================
class FixedItem(BaseSchema):
    name: str
    amount: int

class TeamHero(BaseSchema):
    position: int
    name: str
    grade: str
    level: int

class BattleTeam(BaseSchema):
    team_no: int
    formation_type: str
    heroes: List[TeamHero] = []
    battle_power: Optional[int] = None

class DropItem(BaseSchema):
    item_name: StringData
    amount: int
    rate: float  # 퍼센트 단위

class StageDetails(BaseSchema):
    area_no: int
    stage_no: int
    level_type: str = ""
    exp: int = 0
    fixed_items: List[FixedItem] = []
    battle_teams: List[BattleTeam] = []
    drop_items: List[DropItem] = []
    cash_packs: List[str] = []

"""
Sexagenary reference tables and five-element relations.

Handles:
- Heavenly Stem / Earthly Branch definitions (immutable, table-defined)
- Pillar value type and its 60-cycle index
- Production and control cycles between the five elements
- Ten Gods (十神) mapping relative to the Day Master
- Element occurrence counts over the eight visible characters

Everything here is static data or a pure function of it. The calendar
and analysis modules build on top of these tables.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union

from saju.errors import UnknownBranchError


# ============================================================
# FUNDAMENTAL DATA STRUCTURES
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"


class Element(Enum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"

    @property
    def hanja(self) -> str:
        return ELEMENT_HANJA[self]

    @property
    def korean(self) -> str:
        return ELEMENT_KOREAN[self]


# Fixed iteration order; also the tie-break order for "weakest element"
ELEMENT_ORDER = [Element.WOOD, Element.FIRE, Element.EARTH, Element.METAL, Element.WATER]

ELEMENT_HANJA = {
    Element.WOOD: "木",
    Element.FIRE: "火",
    Element.EARTH: "土",
    Element.METAL: "金",
    Element.WATER: "水",
}

ELEMENT_KOREAN = {
    Element.WOOD: "목",
    Element.FIRE: "화",
    Element.EARTH: "토",
    Element.METAL: "금",
    Element.WATER: "수",
}


@dataclass(frozen=True)
class HeavenlyStem:
    chinese: str
    pinyin: str
    korean: str
    element: Element
    polarity: Polarity
    index: int  # 0-9 in the cycle

    def __str__(self):
        return f"{self.chinese} {self.pinyin} ({self.polarity.value} {self.element.value})"


@dataclass(frozen=True)
class EarthlyBranch:
    chinese: str
    pinyin: str
    korean: str
    animal: str
    element: Element  # season element
    polarity: Polarity
    index: int  # 0-11 in the cycle
    civil_month: int  # Gregorian month in which the branch's month opens

    def __str__(self):
        return f"{self.chinese} {self.pinyin} ({self.animal})"


@dataclass(frozen=True)
class Pillar:
    stem: HeavenlyStem
    branch: EarthlyBranch
    position: str  # "year", "month", "day", "hour", "luck"

    @property
    def sexagenary_index(self) -> int:
        """Position 0-59 in the 60-cycle (0 = 甲子)."""
        return (6 * self.stem.index - 5 * self.branch.index) % 60

    @property
    def chinese(self) -> str:
        return f"{self.stem.chinese}{self.branch.chinese}"

    @property
    def korean(self) -> str:
        return f"{self.stem.korean}{self.branch.korean}"

    def __str__(self):
        return (f"{self.chinese} {self.stem.pinyin} {self.branch.pinyin} "
                f"({self.stem.polarity.value} {self.stem.element.value} {self.branch.animal})")

    def to_dict(self):
        return {
            "position": self.position,
            "stem": {
                "chinese": self.stem.chinese,
                "pinyin": self.stem.pinyin,
                "korean": self.stem.korean,
                "index": self.stem.index,
                "element": self.stem.element.value,
                "polarity": self.stem.polarity.value,
            },
            "branch": {
                "chinese": self.branch.chinese,
                "pinyin": self.branch.pinyin,
                "korean": self.branch.korean,
                "index": self.branch.index,
                "animal": self.branch.animal,
                "element": self.branch.element.value,
                "polarity": self.branch.polarity.value,
            },
            "combined": self.chinese,
            "sexagenary_index": self.sexagenary_index,
            "description": str(self),
        }


# ============================================================
# STEM AND BRANCH DEFINITIONS
# ============================================================

HEAVENLY_STEMS = [
    HeavenlyStem("甲", "Jia", "갑", Element.WOOD, Polarity.YANG, 0),
    HeavenlyStem("乙", "Yi", "을", Element.WOOD, Polarity.YIN, 1),
    HeavenlyStem("丙", "Bing", "병", Element.FIRE, Polarity.YANG, 2),
    HeavenlyStem("丁", "Ding", "정", Element.FIRE, Polarity.YIN, 3),
    HeavenlyStem("戊", "Wu", "무", Element.EARTH, Polarity.YANG, 4),
    HeavenlyStem("己", "Ji", "기", Element.EARTH, Polarity.YIN, 5),
    HeavenlyStem("庚", "Geng", "경", Element.METAL, Polarity.YANG, 6),
    HeavenlyStem("辛", "Xin", "신", Element.METAL, Polarity.YIN, 7),
    HeavenlyStem("壬", "Ren", "임", Element.WATER, Polarity.YANG, 8),
    HeavenlyStem("癸", "Gui", "계", Element.WATER, Polarity.YIN, 9),
]

EARTHLY_BRANCHES = [
    EarthlyBranch("子", "Zi", "자", "Rat", Element.WATER, Polarity.YANG, 0, 12),
    EarthlyBranch("丑", "Chou", "축", "Ox", Element.EARTH, Polarity.YIN, 1, 1),
    EarthlyBranch("寅", "Yin", "인", "Tiger", Element.WOOD, Polarity.YANG, 2, 2),
    EarthlyBranch("卯", "Mao", "묘", "Rabbit", Element.WOOD, Polarity.YIN, 3, 3),
    EarthlyBranch("辰", "Chen", "진", "Dragon", Element.EARTH, Polarity.YANG, 4, 4),
    EarthlyBranch("巳", "Si", "사", "Snake", Element.FIRE, Polarity.YIN, 5, 5),
    EarthlyBranch("午", "Wu", "오", "Horse", Element.FIRE, Polarity.YANG, 6, 6),
    EarthlyBranch("未", "Wei", "미", "Goat", Element.EARTH, Polarity.YIN, 7, 7),
    EarthlyBranch("申", "Shen", "신", "Monkey", Element.METAL, Polarity.YANG, 8, 8),
    EarthlyBranch("酉", "You", "유", "Rooster", Element.METAL, Polarity.YIN, 9, 9),
    EarthlyBranch("戌", "Xu", "술", "Dog", Element.EARTH, Polarity.YANG, 10, 10),
    EarthlyBranch("亥", "Hai", "해", "Pig", Element.WATER, Polarity.YIN, 11, 11),
]

# Lookup helpers
STEM_BY_CHINESE = {s.chinese: s for s in HEAVENLY_STEMS}
STEM_BY_PINYIN = {s.pinyin: s for s in HEAVENLY_STEMS}
STEM_BY_KOREAN = {s.korean: s for s in HEAVENLY_STEMS}
BRANCH_BY_CHINESE = {b.chinese: b for b in EARTHLY_BRANCHES}
BRANCH_BY_PINYIN = {b.pinyin: b for b in EARTHLY_BRANCHES}
BRANCH_BY_KOREAN = {b.korean: b for b in EARTHLY_BRANCHES}
BRANCH_BY_ANIMAL = {b.animal: b for b in EARTHLY_BRANCHES}


def stem_at(index: int) -> HeavenlyStem:
    """Stem for any integer index, wrapped into 0-9."""
    return HEAVENLY_STEMS[index % 10]


def branch_at(index: int) -> EarthlyBranch:
    """Branch for any integer index, wrapped into 0-11."""
    return EARTHLY_BRANCHES[index % 12]


def stem_by(key: Union[str, HeavenlyStem]) -> HeavenlyStem:
    if isinstance(key, HeavenlyStem):
        return key
    for table in (STEM_BY_CHINESE, STEM_BY_PINYIN, STEM_BY_KOREAN):
        if key in table:
            return table[key]
    raise KeyError(f"Unknown heavenly stem: {key!r}")


def branch_by(key: Union[str, int, EarthlyBranch]) -> EarthlyBranch:
    """
    Resolve a branch from hanzi, pinyin, hangul, animal name or index.

    Raises:
        UnknownBranchError: key names none of the twelve branches
    """
    if isinstance(key, EarthlyBranch):
        return key
    if isinstance(key, int) and not isinstance(key, bool):
        if 0 <= key < 12:
            return EARTHLY_BRANCHES[key]
    elif isinstance(key, str):
        for table in (BRANCH_BY_CHINESE, BRANCH_BY_PINYIN, BRANCH_BY_KOREAN, BRANCH_BY_ANIMAL):
            if key in table:
                return table[key]
    raise UnknownBranchError(f"Unknown earthly branch: {key!r}", {"branch": repr(key)})


def pillar_at(sexagenary_index: int, position: str) -> Pillar:
    """Pillar at a position of the 60-cycle (wrapped)."""
    n = sexagenary_index % 60
    return Pillar(stem=stem_at(n), branch=branch_at(n), position=position)


# ============================================================
# FIVE ELEMENT CYCLES
# ============================================================

# Production cycle: Wood → Fire → Earth → Metal → Water → Wood
PRODUCTION_CYCLE = {
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
}

# Control cycle: Wood → Earth → Water → Fire → Metal → Wood
CONTROL_CYCLE = {
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
    Element.METAL: Element.WOOD,
}

_PRODUCED_BY = {child: parent for parent, child in PRODUCTION_CYCLE.items()}
_CONTROLLED_BY = {target: source for source, target in CONTROL_CYCLE.items()}


def generates(element: Element) -> Element:
    """The element this one produces (drains into)."""
    return PRODUCTION_CYCLE[element]


def generated_by(element: Element) -> Element:
    """The element that produces this one (its resource)."""
    return _PRODUCED_BY[element]


def controls(element: Element) -> Element:
    """The element this one overcomes."""
    return CONTROL_CYCLE[element]


def controlled_by(element: Element) -> Element:
    """The element that overcomes this one."""
    return _CONTROLLED_BY[element]


# ============================================================
# TEN GODS (十神) RELATIONSHIP MAPPING
# ============================================================

class TenGod(Enum):
    COMPANION = "비견"        # 比肩
    ROB_WEALTH = "겁재"       # 劫財
    EATING_GOD = "식신"       # 食神
    HURTING_OFFICER = "상관"  # 傷官
    INDIRECT_WEALTH = "편재"  # 偏財
    DIRECT_WEALTH = "정재"    # 正財
    SEVEN_KILLINGS = "편관"   # 偏官 (七殺)
    DIRECT_OFFICER = "정관"   # 正官
    INDIRECT_RESOURCE = "편인"  # 偏印
    DIRECT_RESOURCE = "정인"  # 正印


# (relationship, same_polarity): ten god
TEN_GODS = {
    ("same", True): TenGod.COMPANION,
    ("same", False): TenGod.ROB_WEALTH,
    ("produces_me", True): TenGod.INDIRECT_RESOURCE,
    ("produces_me", False): TenGod.DIRECT_RESOURCE,
    ("i_produce", True): TenGod.EATING_GOD,
    ("i_produce", False): TenGod.HURTING_OFFICER,
    ("i_control", True): TenGod.INDIRECT_WEALTH,
    ("i_control", False): TenGod.DIRECT_WEALTH,
    ("controls_me", True): TenGod.SEVEN_KILLINGS,
    ("controls_me", False): TenGod.DIRECT_OFFICER,
}

TEN_GOD_CATEGORIES = {
    "companion": (TenGod.COMPANION, TenGod.ROB_WEALTH),
    "output": (TenGod.EATING_GOD, TenGod.HURTING_OFFICER),
    "wealth": (TenGod.INDIRECT_WEALTH, TenGod.DIRECT_WEALTH),
    "officer": (TenGod.SEVEN_KILLINGS, TenGod.DIRECT_OFFICER),
    "resource": (TenGod.INDIRECT_RESOURCE, TenGod.DIRECT_RESOURCE),
}


def element_relationship(day_master_element: Element, other_element: Element) -> str:
    """Determine the elemental relationship from DM's perspective."""
    if day_master_element == other_element:
        return "same"
    elif PRODUCTION_CYCLE[other_element] == day_master_element:
        return "produces_me"
    elif PRODUCTION_CYCLE[day_master_element] == other_element:
        return "i_produce"
    elif CONTROL_CYCLE[day_master_element] == other_element:
        return "i_control"
    elif CONTROL_CYCLE[other_element] == day_master_element:
        return "controls_me"
    else:
        raise ValueError(f"No valid relationship between {day_master_element} and {other_element}")


def ten_god(day_master: HeavenlyStem, other: HeavenlyStem) -> TenGod:
    """Ten God of `other` as seen from the Day Master."""
    relationship = element_relationship(day_master.element, other.element)
    same_polarity = (day_master.polarity == other.polarity)
    return TEN_GODS[(relationship, same_polarity)]


def ten_god_distribution(day_master: HeavenlyStem,
                         weighted_stems: Iterable[tuple[HeavenlyStem, float]]) -> dict[TenGod, float]:
    """
    Accumulate weighted Ten God occurrences.

    Stems identical to the Day Master itself are skipped; the Day Master
    does not count as its own companion.

    Args:
        day_master: the Day Master stem
        weighted_stems: (stem, weight) pairs, e.g. visible stems at 1.0 and
            hidden stems at their phase strength / 100
    """
    distribution = {god: 0.0 for god in TenGod}
    for stem, weight in weighted_stems:
        if stem == day_master:
            continue
        distribution[ten_god(day_master, stem)] += weight
    return distribution


def category_total(distribution: dict[TenGod, float], category: str) -> float:
    return sum(distribution[god] for god in TEN_GOD_CATEGORIES[category])


# ============================================================
# ELEMENT COUNTS
# ============================================================

def element_counts(pillars: Iterable[Pillar]) -> dict[Element, int]:
    """Count elements across the visible stem and branch of every pillar."""
    counts = {element: 0 for element in ELEMENT_ORDER}
    for pillar in pillars:
        counts[pillar.stem.element] += 1
        counts[pillar.branch.element] += 1
    return counts


def weakest_element(counts: dict[Element, int]) -> Element:
    """Lowest-count element; ties go to the earliest in ELEMENT_ORDER."""
    weakest = ELEMENT_ORDER[0]
    for element in ELEMENT_ORDER[1:]:
        if counts.get(element, 0) < counts.get(weakest, 0):
            weakest = element
    return weakest

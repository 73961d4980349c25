"""
Rule-based classification of announcement titles.

All functions are pure and total: they look at the title only and always
return a value from their fixed set.
"""

import re

# Generic fallbacks
NATIONWIDE = "전국"
DEFAULT_CATEGORY = "사업화"

LEADING_REGION_PATTERN = re.compile(r"^\s*\[([^\]]+)\]")

# Phrases that contain a place name without naming a place
NON_REGION_PHRASES = re.compile(
    r"경기\s*(?:침체|회복|부양|둔화|변동|하강|위축|활성화|대응)"
    r"|음성\s*(?:인식|합성|AI|데이터|기반)"
    r"|대전환"
    r"|세종대왕"
)

# (keyword, region tag); long province names first so they win over
# the short forms they contain
REGION_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("서울특별시", "서울"),
    ("부산광역시", "부산"),
    ("대구광역시", "대구"),
    ("인천광역시", "인천"),
    ("광주광역시", "광주"),
    ("대전광역시", "대전"),
    ("울산광역시", "울산"),
    ("세종특별자치시", "세종"),
    ("경기도", "경기"),
    ("강원특별자치도", "강원"),
    ("강원도", "강원"),
    ("충청북도", "충북"),
    ("충청남도", "충남"),
    ("전북특별자치도", "전북"),
    ("전라북도", "전북"),
    ("전라남도", "전남"),
    ("경상북도", "경북"),
    ("경상남도", "경남"),
    ("제주특별자치도", "제주"),
    ("서울", "서울"),
    ("부산", "부산"),
    ("대구", "대구"),
    ("인천", "인천"),
    ("광주", "광주"),
    ("대전", "대전"),
    ("울산", "울산"),
    ("세종", "세종"),
    ("경기", "경기"),
    ("강원", "강원"),
    ("충북", "충북"),
    ("충남", "충남"),
    ("전북", "전북"),
    ("전남", "전남"),
    ("경북", "경북"),
    ("경남", "경남"),
    ("제주", "제주"),
)

# Administrative region -> province and city/district keywords
REGION_CATEGORIES: dict[str, tuple[str, ...]] = {
    "수도권": (
        "서울", "경기", "인천", "수원", "성남", "고양", "용인", "부천", "안산",
        "안양", "화성", "평택", "의정부", "파주", "김포", "시흥", "광명", "하남",
        "군포", "오산", "이천", "구리", "남양주", "양주", "포천", "강남구", "서초구",
        "송파구", "마포구", "영등포구", "관악구", "구로구", "금천구", "성동구",
    ),
    "충청권": (
        "대전", "세종", "충북", "충남", "충청", "청주", "천안", "아산", "충주",
        "제천", "공주", "논산", "당진", "서산", "보령", "홍성", "음성군", "진천",
    ),
    "호남권": (
        "광주", "전북", "전남", "전라", "전주", "익산", "군산", "정읍", "남원",
        "목포", "여수", "순천", "나주", "광양", "완주",
    ),
    "영남권": (
        "부산", "대구", "울산", "경북", "경남", "경상", "포항", "구미", "경주",
        "안동", "김천", "영주", "창원", "김해", "진주", "양산", "거제", "통영",
        "밀양", "사천",
    ),
    "강원권": ("강원", "춘천", "원주", "강릉", "속초", "동해", "삼척", "태백"),
    "제주권": ("제주", "서귀포"),
}

# Checked in order; the first group with a keyword in the title wins
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("교육", ("교육", "아카데미", "강좌", "연수", "훈련", "교실", "세미나", "캠프", "스쿨")),
    ("컨설팅·멘토링", ("컨설팅", "멘토링", "멘토", "자문", "코칭", "진단")),
    ("글로벌·수출", ("수출", "해외", "글로벌", "무역", "바이어", "통상")),
    ("공간·시설", ("입주", "공간", "시설", "보육센터", "창업보육", "센터 입주", "오피스", "장비")),
    ("자금·금융", ("융자", "자금", "보증", "대출", "투자", "금융", "펀드", "이차보전", "출연")),
    ("마케팅·판로", ("마케팅", "판로", "홍보", "판매", "전시회", "박람회", "입점", "라이브커머스", "브랜드")),
)

TARGET_AUDIENCE_KEYWORDS: tuple[str, ...] = (
    # youth
    "청년", "청년창업", "청년사업자", "청년기업",
    # small business
    "소상공인", "소기업", "영세", "자영업",
    # solo founders
    "1인", "1인사업자", "1인기업", "프리랜서", "1인창업",
    # pre/early-stage founders
    "예비창업", "초기창업", "예비창업자", "초기창업자", "창업준비", "창업예정",
    # company age
    "3년 미만", "3년미만", "5년 미만", "5년미만", "7년 미만", "7년미만",
    "10년 미만", "10년미만", "창업 3년", "창업3년", "창업 5년", "창업5년",
    "창업 7년", "창업7년",
    # startups / ventures
    "스타트업", "벤처", "창업기업", "신생기업",
    # SMEs
    "중소기업", "소규모", "소형",
    # general founding support
    "창업자", "창업지원", "창업육성", "창업생태계",
)


def place_text(title: str) -> str:
    """Title with economy and technology phrases blanked out for place lookup."""
    return NON_REGION_PHRASES.sub(" ", title)


def extract_region(title: str) -> str:
    """
    Region tag for a title.

    A leading bracketed token wins ("[경기] ..." -> "경기"), then the first
    province/city keyword found, then the nationwide fallback.
    """
    if not title:
        return NATIONWIDE

    match = LEADING_REGION_PATTERN.match(title)
    if match and match.group(1).strip():
        return match.group(1).strip()

    text = place_text(title)
    for keyword, region in REGION_KEYWORDS:
        if keyword in text:
            return region

    return NATIONWIDE


def region_category(title: str) -> str:
    """Administrative region (수도권, 충청권, ...) or the nationwide fallback."""
    if not title:
        return NATIONWIDE

    text = place_text(title)
    for category, keywords in REGION_CATEGORIES.items():
        if any(keyword in text for keyword in keywords):
            return category

    return NATIONWIDE


def classify_category(title: str) -> str:
    """Topical category; defaults to commercialization (사업화)."""
    if not title:
        return DEFAULT_CATEGORY

    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in title for keyword in keywords):
            return category

    return DEFAULT_CATEGORY


def is_target_audience(title: str) -> bool:
    """True if the title addresses youth, small-business or early-stage founders."""
    if not title:
        return False
    return any(keyword in title for keyword in TARGET_AUDIENCE_KEYWORDS)


ALL_CATEGORIES: tuple[str, ...] = tuple(name for name, _ in CATEGORY_KEYWORDS) + (DEFAULT_CATEGORY,)
ALL_REGION_CATEGORIES: tuple[str, ...] = tuple(REGION_CATEGORIES) + (NATIONWIDE,)

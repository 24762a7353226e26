"""
Gregorian <-> lunisolar calendar conversion.

Handles:
- Gregorian date to lunar date (year, month, day, leap flag)
- Lunar date back to Gregorian
- Clock hour to double-hour (時辰) index
- Whole-day date shifts (early-zi handling)
- Pre-formatted lunar display strings (sexagenary year, month, day)

Lunar months come from a per-year bit-packed table covering 1888-2111.
Supported query span is 1900-2100; anything outside raises ValueError.
"""

from dataclasses import dataclass, asdict
import logging
import swisseph as swe

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100


# ============================================================
# SEXAGENARY CYCLE NAMES
# ============================================================

STEM_NAMES = ["甲", "乙", "丙", "丁", "戊", "己", "庚", "辛", "壬", "癸"]
BRANCH_NAMES = ["子", "丑", "寅", "卯", "辰", "巳", "午", "未", "申", "酉", "戌", "亥"]
ZODIAC_NAMES = ["鼠", "牛", "虎", "兔", "龍", "蛇", "馬", "羊", "猴", "雞", "狗", "豬"]

LUNAR_MONTH_NAMES = ["正", "二", "三", "四", "五", "六",
                     "七", "八", "九", "十", "十一", "十二"]

LUNAR_DAY_NAMES = [
    "初一", "初二", "初三", "初四", "初五", "初六", "初七", "初八", "初九", "初十",
    "十一", "十二", "十三", "十四", "十五", "十六", "十七", "十八", "十九", "二十",
    "廿一", "廿二", "廿三", "廿四", "廿五", "廿六", "廿七", "廿八", "廿九", "三十",
]

# 甲子 year used as the origin of the 60-year cycle
SEXAGENARY_BASE_YEAR = 1864


# ============================================================
# LUNAR YEAR TABLES
# ============================================================
#
# LUNAR_MONTH_DAYS[y - 1888]:
#   bits 13-16  leap month number (0 = no leap month)
#   bits 0-12   month lengths in order, bit (12 - i) set => 30 days else 29
#               (a leap month sits right after the month it repeats)
#
# SOLAR_NEW_YEAR[y - 1888]:
#   Gregorian date of lunar new year packed as year << 9 | month << 5 | day

TABLE_BASE_YEAR = 1888

LUNAR_MONTH_DAYS = [
    0x1694, 0x16aa, 0x4ad5, 0xab6, 0xc4b7, 0x4ae, 0xa56, 0xb52a,
    0x1d2a, 0xd54, 0x75aa, 0x156a, 0x1096d, 0x95c, 0x14ae, 0xaa4d,
    0x1a4c, 0x1b2a, 0x8d55, 0xad4, 0x135a, 0x495d, 0x95c, 0xd49b,
    0x149a, 0x1a4a, 0xbaa5, 0x16a8, 0x1ad4, 0x52da, 0x12b6, 0xe937,
    0x92e, 0x1496, 0xb64b, 0xd4a, 0xda8, 0x95b5, 0x56c, 0x12ae,
    0x492f, 0x92e, 0xcc96, 0x1a94, 0x1d4a, 0xada9, 0xb5a, 0x56c,
    0x726e, 0x125c, 0xf92d, 0x192a, 0x1a94, 0xdb4a, 0x16aa, 0xad4,
    0x955b, 0x4ba, 0x125a, 0x592b, 0x152a, 0xf695, 0xd94, 0x16aa,
    0xaab5, 0x9b4, 0x14b6, 0x6a57, 0xa56, 0x1152a, 0x1d2a, 0xd54,
    0xd5aa, 0x156a, 0x96c, 0x94ae, 0x14ae, 0xa4c, 0x7d26, 0x1b2a,
    0xeb55, 0xad4, 0x12da, 0xa95d, 0x95a, 0x149a, 0x9a4d, 0x1a4a,
    0x11aa5, 0x16a8, 0x16d4, 0xd2da, 0x12b6, 0x936, 0x9497, 0x1496,
    0x1564b, 0xd4a, 0xda8, 0xd5b4, 0x156c, 0x12ae, 0xa92f, 0x92e,
    0xc96, 0x6d4a, 0x1d4a, 0x10d65, 0xb58, 0x156c, 0xb26d, 0x125c,
    0x192c, 0x9a95, 0x1a94, 0x1b4a, 0x4b55, 0xad4, 0xf55b, 0x4ba,
    0x125a, 0xb92b, 0x152a, 0x1694, 0x96aa, 0x15aa, 0x12ab5, 0x974,
    0x14b6, 0xca57, 0xa56, 0x1526, 0x8e95, 0xd54, 0x15aa, 0x49b5,
    0x96c, 0xd4ae, 0x149c, 0x1a4c, 0xbd26, 0x1aa6, 0xb54, 0x6d6a,
    0x12da, 0x1695d, 0x95a, 0x149a, 0xda4b, 0x1a4a, 0x1aa4, 0xbb54,
    0x16b4, 0xada, 0x495b, 0x936, 0xf497, 0x1496, 0x154a, 0xb6a5,
    0xda4, 0x15b4, 0x6ab6, 0x126e, 0x1092f, 0x92e, 0xc96, 0xcd4a,
    0x1d4a, 0xd64, 0x956c, 0x155c, 0x125c, 0x792e, 0x192c, 0xfa95,
    0x1a94, 0x1b4a, 0xab55, 0xad4, 0x14da, 0x8a5d, 0xa5a, 0x1152b,
    0x152a, 0x1694, 0xd6aa, 0x15aa, 0xab4, 0x94ba, 0x14b6, 0xa56,
    0x7527, 0xd26, 0xee53, 0xd54, 0x15aa, 0xa9b5, 0x96c, 0x14ae,
    0x8a4e, 0x1a4c, 0x11d26, 0x1aa4, 0x1b54, 0xcd6a, 0xada, 0x95c,
    0x949d, 0x149a, 0x1a2a, 0x5b25, 0x1aa4, 0xfb52, 0x16b4, 0xaba,
    0xa95b, 0x936, 0x1496, 0x9a4b, 0x154a, 0x136a5, 0xda4, 0x15ac,
]

SOLAR_NEW_YEAR = [
    0xec04c, 0xec23f, 0xec435, 0xec649, 0xec83e, 0xeca51, 0xecc46, 0xece3a,
    0xed04d, 0xed242, 0xed436, 0xed64a, 0xed83f, 0xeda53, 0xedc48, 0xede3d,
    0xee050, 0xee244, 0xee439, 0xee64d, 0xee842, 0xeea36, 0xeec4a, 0xeee3e,
    0xef052, 0xef246, 0xef43a, 0xef64e, 0xef843, 0xefa37, 0xefc4b, 0xefe41,
    0xf0054, 0xf0248, 0xf043c, 0xf0650, 0xf0845, 0xf0a38, 0xf0c4d, 0xf0e42,
    0xf1037, 0xf124a, 0xf143e, 0xf1651, 0xf1846, 0xf1a3a, 0xf1c4e, 0xf1e44,
    0xf2038, 0xf224b, 0xf243f, 0xf2653, 0xf2848, 0xf2a3b, 0xf2c4f, 0xf2e45,
    0xf3039, 0xf324d, 0xf3442, 0xf3636, 0xf384a, 0xf3a3d, 0xf3c51, 0xf3e46,
    0xf403b, 0xf424e, 0xf4443, 0xf4638, 0xf484c, 0xf4a3f, 0xf4c52, 0xf4e48,
    0xf503c, 0xf524f, 0xf5445, 0xf5639, 0xf584d, 0xf5a42, 0xf5c35, 0xf5e49,
    0xf603e, 0xf6251, 0xf6446, 0xf663b, 0xf684f, 0xf6a43, 0xf6c37, 0xf6e4b,
    0xf703f, 0xf7252, 0xf7447, 0xf763c, 0xf7850, 0xf7a45, 0xf7c39, 0xf7e4d,
    0xf8042, 0xf8254, 0xf8449, 0xf863d, 0xf8851, 0xf8a46, 0xf8c3b, 0xf8e4f,
    0xf9044, 0xf9237, 0xf944a, 0xf963f, 0xf9853, 0xf9a47, 0xf9c3c, 0xf9e50,
    0xfa045, 0xfa238, 0xfa44c, 0xfa641, 0xfa836, 0xfaa49, 0xfac3d, 0xfae52,
    0xfb047, 0xfb23a, 0xfb44e, 0xfb643, 0xfb837, 0xfba4a, 0xfbc3f, 0xfbe53,
    0xfc048, 0xfc23c, 0xfc450, 0xfc645, 0xfc839, 0xfca4c, 0xfcc41, 0xfce36,
    0xfd04a, 0xfd23d, 0xfd451, 0xfd646, 0xfd83a, 0xfda4d, 0xfdc43, 0xfde37,
    0xfe04b, 0xfe23f, 0xfe453, 0xfe648, 0xfe83c, 0xfea4f, 0xfec44, 0xfee38,
    0xff04c, 0xff241, 0xff436, 0xff64a, 0xff83e, 0xffa51, 0xffc46, 0xffe3a,
    0x10004e, 0x100242, 0x100437, 0x10064b, 0x100841, 0x100a53, 0x100c48, 0x100e3c,
    0x10104f, 0x101244, 0x101438, 0x10164c, 0x101842, 0x101a35, 0x101c49, 0x101e3d,
    0x102051, 0x102245, 0x10243a, 0x10264e, 0x102843, 0x102a37, 0x102c4b, 0x102e3f,
    0x103053, 0x103247, 0x10343b, 0x10364f, 0x103845, 0x103a38, 0x103c4c, 0x103e42,
    0x104036, 0x104249, 0x10443d, 0x104651, 0x104846, 0x104a3a, 0x104c4e, 0x104e43,
    0x105038, 0x10524a, 0x10543e, 0x105652, 0x105847, 0x105a3b, 0x105c4f, 0x105e45,
    0x106039, 0x10624c, 0x106441, 0x106635, 0x106849, 0x106a3d, 0x106c51, 0x106e47,
    0x10703c, 0x10724f, 0x107444, 0x107638, 0x10784c, 0x107a3f, 0x107c53, 0x107e48,
]


def _bits(data: int, length: int, shift: int) -> int:
    return (data >> shift) & ((1 << length) - 1)


def _leap_month(year_data: int) -> int:
    return _bits(year_data, 4, 13)


def _month_length(year_data: int, position: int) -> int:
    """Days in the month at `position` (0-based, leap month counted in order)."""
    return 30 if _bits(year_data, 1, 12 - position) else 29


def _new_year_date(table_index: int) -> tuple[int, int, int]:
    packed = SOLAR_NEW_YEAR[table_index]
    return _bits(packed, 12, 9), _bits(packed, 4, 5), _bits(packed, 5, 0)


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class SolarDate:
    year: int
    month: int
    day: int

    def __str__(self):
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class LunarDate:
    lunar_year: int
    lunar_month: int  # 1-12
    lunar_day: int  # 1-30
    is_leap: bool = False
    time_index: int = 0  # 0-11, 0 = 子

    def __str__(self):
        return f"{ganzhi_year_label(self.lunar_year)} {lunar_date_label(self.lunar_month, self.lunar_day, self.is_leap)}"

    def to_dict(self):
        return {
            "lunarYear": self.lunar_year,
            "lunarMonth": self.lunar_month,
            "lunarDay": self.lunar_day,
            "isLeapMonth": self.is_leap,
            "timeIndex": self.time_index,
            "year": ganzhi_year_label(self.lunar_year),
            "date": lunar_date_label(self.lunar_month, self.lunar_day, self.is_leap),
        }


# ============================================================
# LINEAR DAY COUNT
# ============================================================
#
# Julian Day Number at noon: any consistent day ordinal works for the
# offsets below, and Swiss Ephemeris already handles the Gregorian rules.

def day_number(year: int, month: int, day: int) -> int:
    """Julian Day Number of a Gregorian date. Raises ValueError for impossible dates."""
    jd = swe.julday(year, month, day, 12.0)
    y, m, d, _ = swe.revjul(jd)
    if (y, m, d) != (year, month, day):
        raise ValueError(f"Invalid Gregorian date: {year:04d}-{month:02d}-{day:02d}")
    return int(jd)


def from_day_number(number: int) -> SolarDate:
    y, m, d, _ = swe.revjul(float(number))
    return SolarDate(int(y), int(m), int(d))


def shift_days(year: int, month: int, day: int, days: int) -> SolarDate:
    """Gregorian date `days` whole days after (or before) the given one."""
    return from_day_number(day_number(year, month, day) + days)


def _check_year(year: int, label: str = "Year"):
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValueError(f"{label} {year} outside supported range {MIN_YEAR}-{MAX_YEAR}")


# ============================================================
# CONVERSION
# ============================================================

def time_index(hour: int) -> int:
    """
    Double-hour index for a clock hour.

    23:00-00:59 is 子 (0), 01:00-02:59 is 丑 (1), ... 21:00-22:59 is 亥 (11).
    """
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour must be 0-23, got {hour}")
    if hour == 23 or hour == 0:
        return 0
    return (hour + 1) // 2


def to_lunar(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> LunarDate:
    """
    Convert a Gregorian date/time to a lunar date.

    Dates before lunar new year resolve into the previous lunar year, so
    the returned lunar_year can differ from the input year.

    Args:
        year, month, day: Gregorian date (year 1900-2100)
        hour, minute: clock time, used only for the double-hour index

    Returns:
        LunarDate
    """
    _check_year(year)
    if not 0 <= minute <= 59:
        raise ValueError(f"Minute must be 0-59, got {minute}")
    query = day_number(year, month, day)

    index = year - TABLE_BASE_YEAR
    if SOLAR_NEW_YEAR[index] > (year << 9 | month << 5 | day):
        index -= 1

    offset = query - day_number(*_new_year_date(index)) + 1
    year_data = LUNAR_MONTH_DAYS[index]
    leap = _leap_month(year_data)

    position = 0
    while position < 13:
        length = _month_length(year_data, position)
        if offset <= length:
            break
        offset -= length
        position += 1

    lunar_month = position + 1
    is_leap = False
    if leap and lunar_month > leap:
        is_leap = lunar_month == leap + 1
        lunar_month -= 1

    result = LunarDate(
        lunar_year=index + TABLE_BASE_YEAR,
        lunar_month=lunar_month,
        lunar_day=offset,
        is_leap=is_leap,
        time_index=time_index(hour),
    )
    logger.debug(f"{year:04d}-{month:02d}-{day:02d} {hour:02d}:{minute:02d} -> {result}")
    return result


def leap_month_of(lunar_year: int) -> int:
    """Leap month number of a lunar year (0 if the year has none)."""
    return _leap_month(LUNAR_MONTH_DAYS[lunar_year - TABLE_BASE_YEAR])


def month_days(lunar_year: int, lunar_month: int, is_leap: bool = False) -> int:
    """Length (29 or 30) of a lunar month."""
    year_data = LUNAR_MONTH_DAYS[lunar_year - TABLE_BASE_YEAR]
    leap = _leap_month(year_data)
    if is_leap:
        if leap != lunar_month:
            raise ValueError(f"Lunar year {lunar_year} has no leap month {lunar_month}")
        return _month_length(year_data, leap)
    position = lunar_month - 1 if (leap == 0 or lunar_month <= leap) else lunar_month
    return _month_length(year_data, position)


def to_solar(lunar_year: int, lunar_month: int, lunar_day: int, is_leap: bool = False) -> SolarDate:
    """
    Convert a lunar date back to its Gregorian date.

    Raises ValueError for a result outside 1900-2100, a leap flag on a month
    that is not that year's leap month, or a day past the end of the month.
    Lunar year 1899 is accepted for the dates before the 1900 new year.
    """
    if not MIN_YEAR - 1 <= lunar_year <= MAX_YEAR:
        raise ValueError(f"Lunar year {lunar_year} outside supported range {MIN_YEAR - 1}-{MAX_YEAR}")
    if not 1 <= lunar_month <= 12:
        raise ValueError(f"Lunar month must be 1-12, got {lunar_month}")
    length = month_days(lunar_year, lunar_month, is_leap)
    if not 1 <= lunar_day <= length:
        raise ValueError(f"Lunar day must be 1-{length} for month {lunar_month} of {lunar_year}, got {lunar_day}")

    index = lunar_year - TABLE_BASE_YEAR
    year_data = LUNAR_MONTH_DAYS[index]
    leap = _leap_month(year_data)

    if is_leap:
        months_before = leap
    elif lunar_month <= leap or leap == 0:
        months_before = lunar_month - 1
    else:
        months_before = lunar_month

    offset = sum(_month_length(year_data, i) for i in range(months_before)) + lunar_day
    result = from_day_number(day_number(*_new_year_date(index)) + offset - 1)
    _check_year(result.year)
    return result


def lunar_to_solar(lunar: LunarDate) -> SolarDate:
    return to_solar(lunar.lunar_year, lunar.lunar_month, lunar.lunar_day, lunar.is_leap)


# ============================================================
# DISPLAY STRINGS
# ============================================================

def year_stem_branch(lunar_year: int) -> tuple[int, int]:
    """(stem index, branch index) of a year in the sexagenary cycle."""
    offset = (lunar_year - SEXAGENARY_BASE_YEAR) % 60
    return offset % 10, offset % 12


def ganzhi_year_label(lunar_year: int) -> str:
    """e.g. 2023 -> '癸卯年，兔'"""
    stem, branch = year_stem_branch(lunar_year)
    return f"{STEM_NAMES[stem]}{BRANCH_NAMES[branch]}年，{ZODIAC_NAMES[branch]}"


def lunar_date_label(lunar_month: int, lunar_day: int, is_leap: bool = False) -> str:
    """e.g. (2, 10) -> '二月初十', leap months get a 閏 prefix."""
    month = f"{LUNAR_MONTH_NAMES[lunar_month - 1]}月" if 1 <= lunar_month <= 12 else f"{lunar_month}月"
    day = LUNAR_DAY_NAMES[lunar_day - 1] if 1 <= lunar_day <= 30 else f"{lunar_day}日"
    label = month + day
    return f"閏{label}" if is_leap else label


# Quick verification
if __name__ == "__main__":
    lunar = to_lunar(2000, 1, 1)
    print(f"2000-01-01 -> {lunar} ({lunar.lunar_year}/{lunar.lunar_month}/{lunar.lunar_day})")
    print(f"Back to solar: {lunar_to_solar(lunar)}")

    leap = to_lunar(2020, 6, 6)
    print(f"2020-06-06 -> {leap} (leap={leap.is_leap})")

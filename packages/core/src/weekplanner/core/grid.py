"""Time Grid -- 周视图时间轴的固定分辨率网格

一天从 DAY_START_HOUR 开始，按 30 分钟切分为 TOTAL_SLOTS 个 slot。
所有函数均为纯函数，不会失败。
"""

import math

DAY_START_HOUR: int = 5
DAY_END_HOUR: int = 24
SLOT_MINUTES: int = 30
TOTAL_SLOTS: int = (DAY_END_HOUR - DAY_START_HOUR) * 60 // SLOT_MINUTES

# 单个 slot 在时间轴上的高度（指针坐标单位）
SLOT_HEIGHT: int = 76

DAYS_PER_WEEK: int = 7
DAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# 拖拽调整时长的上下限（分钟）
RESIZE_MIN_MINUTES: int = 30
RESIZE_MAX_MINUTES: int = 240


def slots_needed(duration: int) -> int:
    """时长占用的 slot 数：ceil(duration / 30)，至少 1"""
    return max(1, math.ceil(duration / SLOT_MINUTES))


def max_start_slot(duration: int) -> int:
    """该时长任务可以开始的最后一个 slot；为负表示当天放不下"""
    return TOTAL_SLOTS - slots_needed(duration)


def slot_start_minutes(slot: int) -> int:
    """slot 起始时刻距 0 点的分钟数"""
    return DAY_START_HOUR * 60 + slot * SLOT_MINUTES


def slot_label(slot: int) -> str:
    """slot 的 12 小时制标签，如 "5:00 AM" / "12:30 PM" """
    total_minutes = slot_start_minutes(slot)
    h24 = (total_minutes // 60) % 24
    minutes = total_minutes % 60
    period = "PM" if h24 >= 12 else "AM"
    h12 = 12 if h24 % 12 == 0 else h24 % 12
    return f"{h12}:{minutes:02d} {period}"


def day_name(day_index: int) -> str:
    """day_index（0=Monday）对应的星期名"""
    return DAY_NAMES[day_index % DAYS_PER_WEEK]


def cell_label(day_index: int, slot: int) -> str:
    """(day_index, slot) 的可读标签，如 "Tuesday 9:30 AM" """
    return f"{day_name(day_index)} {slot_label(slot)}"


def snap_resize_duration(
    start_duration: int,
    pixel_delta: float,
    slot_height: float = SLOT_HEIGHT,
) -> int:
    """按指针位移计算新的时长

    位移换算为 slot 数后四舍五入（半步向上）为整步，每步 30 分钟，
    叠加到起始时长上，并限制在 [RESIZE_MIN_MINUTES, RESIZE_MAX_MINUTES]。
    位移不足半个 slot 时原样返回（15、45 分钟等时长不会被改写）。
    """
    steps = round_half_up(pixel_delta / slot_height)
    if steps == 0:
        return start_duration
    duration = start_duration + steps * SLOT_MINUTES
    return max(RESIZE_MIN_MINUTES, min(RESIZE_MAX_MINUTES, duration))


def round_half_up(value: float) -> int:
    """四舍五入，.5 一律向上（内置 round 为银行家舍入）"""
    return math.floor(value + 0.5)

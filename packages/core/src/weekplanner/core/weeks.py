"""Week key 工具 -- 以周一日期（ISO 字符串）标识一周"""

from datetime import date, datetime, timedelta

from .grid import DAYS_PER_WEEK


def week_start_monday(day: date) -> date:
    """返回 day 所在周的周一"""
    return day - timedelta(days=day.weekday())


def week_key_for(day: date) -> str:
    """返回 day 所在周的 week key"""
    return week_start_monday(day).isoformat()


def current_week_key() -> str:
    """本周的 week key（本地日期）"""
    return week_key_for(datetime.now().date())


def parse_week_key(key: str) -> date:
    """解析 week key

    Raises:
        ValueError: 不是合法的 ISO 日期，或该日期不是周一
    """
    parsed = date.fromisoformat(key)
    if parsed.weekday() != 0:
        raise ValueError(f"week key must be a Monday: {key}")
    return parsed


def is_week_key(key: str) -> bool:
    try:
        parse_week_key(key)
    except (TypeError, ValueError):
        return False
    return True


def shift_week_key(key: str, delta_weeks: int) -> str:
    """前后翻周"""
    return (parse_week_key(key) + timedelta(weeks=delta_weeks)).isoformat()


def day_date(key: str, day_index: int) -> date:
    """周内第 day_index 天（0=周一）的日期"""
    if not 0 <= day_index < DAYS_PER_WEEK:
        raise ValueError(f"day_index out of range: {day_index}")
    return parse_week_key(key) + timedelta(days=day_index)


def week_label(key: str) -> str:
    """如 "Week of March 2, 2026" """
    monday = parse_week_key(key)
    return f"Week of {monday.strftime('%B')} {monday.day}, {monday.year}"


def day_label(key: str, day_index: int) -> str:
    """如 "Mar 4" """
    day = day_date(key, day_index)
    return f"{day.strftime('%b')} {day.day}"

"""Task Domain Model -- 任务、排期、附件与部分更新

completed 由 status 推导（status == Done），不单独存储，
避免两个字段在不同调用点被分别修改后出现不一致。
"""

import re
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator
from ulid import ULID

from ..grid import DAYS_PER_WEEK, TOTAL_SLOTS, slots_needed
from ..weeks import parse_week_key
from .enums import DEFAULT_DURATION, TaskStatus, is_valid_duration, status_for_completed

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def new_id() -> str:
    """生成 ULID 字符串"""
    return str(ULID())


def normalize_link(value: str) -> str:
    """去除空白并补全 https:// 前缀；空串返回空串"""
    trimmed = value.strip()
    if not trimmed:
        return ""
    if _SCHEME_RE.match(trimmed):
        return trimmed
    return f"https://{trimmed}"


def normalize_links(links: list[str]) -> list[str]:
    """规范化链接列表：丢弃空链接与重复链接，保持原顺序"""
    result: list[str] = []
    for raw in links:
        link = normalize_link(raw)
        if link and link not in result:
            result.append(link)
    return result


class Attachment(BaseModel):
    """附件元数据 -- payload_ref 为不透明的内容引用"""

    attachment_id: str = Field(default_factory=new_id, description="附件 ID")
    name: str = Field(description="文件名")
    mime_type: str = Field(default="", description="MIME 类型")
    size: int = Field(default=0, ge=0, description="字节数")
    payload_ref: str = Field(default="", description="内容引用")


class Schedule(BaseModel):
    """时间轴上的排期位置"""

    week_key: str = Field(description="所在周的周一（ISO 日期）")
    day_index: int = Field(ge=0, lt=DAYS_PER_WEEK, description="0=Monday .. 6=Sunday")
    slot: int = Field(ge=0, lt=TOTAL_SLOTS, description="距一天起点的 30 分钟偏移")
    timezone: str = Field(default="UTC", description="排期时的时区标签")

    @field_validator("week_key")
    @classmethod
    def _check_week_key(cls, value: str) -> str:
        parse_week_key(value)
        return value


class Task(BaseModel):
    """任务记录

    不变量：若已排期，slot + slots_needed(duration) <= TOTAL_SLOTS。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    user_id: str = Field(description="所属用户")
    title: str = Field(description="任务标题")
    duration: int = Field(default=DEFAULT_DURATION, description="时长（分钟）")
    due_date: date | None = Field(default=None, description="截止日期")
    urgent: bool = Field(default=False)
    important: bool = Field(default=False)
    notes: str = Field(default="", description="备注")
    links: list[str] = Field(default_factory=list, description="有序链接列表")
    attachments: list[Attachment] = Field(default_factory=list, description="有序附件列表")
    status: TaskStatus = Field(default=TaskStatus.NOT_STARTED, description="看板状态")
    scheduled: Schedule | None = Field(default=None, description="排期，None 表示在 backlog")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completed(self) -> bool:
        return self.status == TaskStatus.DONE

    @property
    def slot_count(self) -> int:
        return slots_needed(self.duration)

    @field_validator("duration")
    @classmethod
    def _check_duration(cls, value: int) -> int:
        if not is_valid_duration(value):
            raise ValueError(f"duration must be a multiple of 15 between 15 and 240, got {value}")
        return value

    @field_validator("links")
    @classmethod
    def _normalize_links(cls, value: list[str]) -> list[str]:
        return normalize_links(value)

    @model_validator(mode="after")
    def _check_schedule_fits(self) -> "Task":
        if self.scheduled is not None:
            end = self.scheduled.slot + slots_needed(self.duration)
            if end > TOTAL_SLOTS:
                raise ValueError(
                    f"task runs past the end of the day: slot {self.scheduled.slot} "
                    f"+ {slots_needed(self.duration)} > {TOTAL_SLOTS}"
                )
        return self

    def is_scheduled_on(self, week_key: str, day_index: int | None = None) -> bool:
        """是否排在指定周（及指定日）"""
        if self.scheduled is None or self.scheduled.week_key != week_key:
            return False
        return day_index is None or self.scheduled.day_index == day_index

    def apply_patch(self, patch: "TaskPatch", updated_at: datetime) -> "Task":
        """合并部分更新并重新校验，返回新的 Task"""
        data = self.model_dump(exclude={"completed"})
        data.update(patch.changes())
        data["updated_at"] = updated_at
        return Task.model_validate(data)


# 这些字段显式传 None 表示"清空"
_CLEARABLE_FIELDS = frozenset({"scheduled", "due_date"})


class TaskPatch(BaseModel):
    """部分字段替换 -- 只有显式提供的字段才会生效

    completed 会被统一翻译为 status（True -> Done，False -> Not Started），
    同时提供 status 时以 status 为准。
    """

    title: str | None = None
    completed: bool | None = None
    duration: int | None = None
    due_date: date | None = None
    urgent: bool | None = None
    important: bool | None = None
    notes: str | None = None
    links: list[str] | None = None
    attachments: list[Attachment] | None = None
    status: TaskStatus | None = None
    scheduled: Schedule | None = None

    def changes(self) -> dict[str, Any]:
        """返回需要写入 Task 的字段"""
        data: dict[str, Any] = {}
        for name in self.model_fields_set:
            if name == "completed":
                continue
            value = getattr(self, name)
            if value is None and name not in _CLEARABLE_FIELDS:
                continue
            data[name] = value
        if self.completed is not None and "status" not in data:
            data["status"] = status_for_completed(self.completed)
        return data

    def is_empty(self) -> bool:
        return not self.changes()

    def touches_placement(self) -> bool:
        """是否会改变时间轴上的占用"""
        changed = self.changes()
        return "duration" in changed or "scheduled" in changed

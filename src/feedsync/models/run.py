"""UpdateRun 更新任务记录模型."""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UpdateRun(SQLModel, table=True):
    """一次 Feed 更新任务的执行记录."""

    __tablename__ = "update_runs"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    trigger: str = Field(default="manual", description="触发方式: manual|scheduled|cli")
    status: str = Field(default="running", description="状态: running|success|failed")
    total_feeds: int = Field(default=0, description="处理的 Feed 数")
    success_count: int = Field(default=0)
    not_modified_count: int = Field(default=0)
    skipped_count: int = Field(default=0)
    error_count: int = Field(default=0)
    articles_created: int = Field(default=0, description="新建文章数")
    articles_updated: int = Field(default=0, description="更新文章数")
    error_message: str | None = Field(default=None, description="错误信息")
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = Field(default=None)

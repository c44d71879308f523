"""测试配置和 fixtures."""

from collections.abc import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from feedsync.config import Settings
from feedsync.models.feed import FEED_RECORD_TYPE, Feed
from feedsync.models.run import UpdateRun  # noqa: F401
from feedsync.store.memory import InMemoryRecordStore


def build_rss(
    items: list[dict[str, str]],
    title: str = "Example Feed",
    ttl: int | None = None,
) -> bytes:
    """构造 RSS 2.0 文档."""
    entries = "".join(
        "<item>"
        f"<guid>{item['guid']}</guid>"
        f"<title>{item.get('title', '')}</title>"
        f"<link>{item.get('link', 'https://example.com/' + item['guid'])}</link>"
        f"<description>{item.get('description', 'summary')}</description>"
        "</item>"
        for item in items
    )
    ttl_tag = f"<ttl>{ttl}</ttl>" if ttl is not None else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel>'
        f"<title>{title}</title>"
        "<link>https://example.com/</link>"
        "<description>Example description</description>"
        f"{ttl_tag}{entries}"
        "</channel></rss>"
    ).encode()


@pytest.fixture
def settings() -> Settings:
    """测试用配置：内存存储，不限速."""
    return Settings(
        _env_file=None,
        store_backend="memory",
        update_delay=0,
        scheduler_enabled=False,
        database_url="sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    """内存记录存储."""
    return InMemoryRecordStore()


@pytest.fixture
def make_feed() -> Callable[..., Feed]:
    """构造 Feed 的工厂."""

    def _make(**overrides) -> Feed:
        values = {
            "record_name": "feed-1",
            "feed_url": "https://example.com/feed.xml",
            "title": "Example Feed",
        }
        values.update(overrides)
        return Feed(**values)

    return _make


@pytest_asyncio.fixture
async def stored_feed(
    memory_store: InMemoryRecordStore, make_feed: Callable[..., Feed]
) -> Feed:
    """已写入内存存储的 Feed（带并发控制标记）."""
    feed = make_feed()
    record = await memory_store.create(
        FEED_RECORD_TYPE, feed.record_name, feed.to_fields()
    )
    return Feed.from_record(record)


def mock_transport(
    handler: Callable[[httpx.Request], httpx.Response],
) -> httpx.MockTransport:
    """包装请求处理函数，并记录收到的请求."""
    requests: list[httpx.Request] = []

    def _handle(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    transport = httpx.MockTransport(_handle)
    transport.requests = requests  # type: ignore[attr-defined]
    return transport


@pytest_asyncio.fixture
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """创建测试用的内存数据库会话."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session

    await engine.dispose()

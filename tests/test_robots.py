"""测试 robots.txt 合规检查."""

import httpx

from conftest import mock_transport
from feedsync.fetcher.robots import RobotsComplianceGate, RobotsRule, evaluate

ROBOTS = """
User-agent: FeedSync
Disallow: /private
Allow: /private/feed.xml

User-agent: *
Disallow: /
"""


def robots_handler(body: str, status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/robots.txt"
        return httpx.Response(status, text=body)

    return handler


class TestEvaluate:
    """测试规则匹配."""

    def test_no_rules_allows(self) -> None:
        """没有规则时允许."""
        assert evaluate([], "https://example.com/anything") is True

    def test_longest_match_wins(self) -> None:
        """更长的前缀优先."""
        rules = [RobotsRule("/a", False), RobotsRule("/a/b", True)]
        assert evaluate(rules, "https://example.com/a/b/c") is True
        assert evaluate(rules, "https://example.com/a/x") is False

    def test_allow_wins_tie(self) -> None:
        """长度相同时 Allow 优先."""
        rules = [RobotsRule("/feed", False), RobotsRule("/feed", True)]
        assert evaluate(rules, "https://example.com/feed") is True

    def test_unmatched_path_allowed(self) -> None:
        """没有匹配的规则时允许."""
        rules = [RobotsRule("/private", False)]
        assert evaluate(rules, "https://example.com/public") is True


class TestRobotsComplianceGate:
    """测试 RobotsComplianceGate."""

    async def test_uses_agent_specific_group(self) -> None:
        """匹配自己的 User-agent 组，而不是 * 组."""
        transport = mock_transport(robots_handler(ROBOTS))
        async with httpx.AsyncClient(transport=transport) as client:
            gate = RobotsComplianceGate(client, "FeedSync")

            assert await gate.is_allowed("https://example.com/blog/feed") is True
            assert await gate.is_allowed("https://example.com/private/x") is False
            assert await gate.is_allowed("https://example.com/private/feed.xml") is True

    async def test_falls_back_to_wildcard_group(self) -> None:
        """没有专属组时使用 * 组."""
        transport = mock_transport(robots_handler(ROBOTS))
        async with httpx.AsyncClient(transport=transport) as client:
            gate = RobotsComplianceGate(client, "OtherBot")

            assert await gate.is_allowed("https://example.com/feed") is False

    async def test_caches_per_origin(self) -> None:
        """同一源站只请求一次 robots.txt."""
        transport = mock_transport(robots_handler(ROBOTS))
        async with httpx.AsyncClient(transport=transport) as client:
            gate = RobotsComplianceGate(client, "FeedSync")
            await gate.check("https://example.com/a")
            await gate.check("https://example.com/b")
            await gate.check("https://other.example/c")

        assert len(transport.requests) == 2

    async def test_not_found_allows(self) -> None:
        """404 视为没有限制."""
        transport = mock_transport(robots_handler("", status=404))
        async with httpx.AsyncClient(transport=transport) as client:
            verdict = await RobotsComplianceGate(client, "FeedSync").check(
                "https://example.com/feed"
            )

        assert verdict.allowed is True
        assert verdict.error is None

    async def test_server_error_fails_open(self) -> None:
        """5xx 时放行并带回错误信息."""
        transport = mock_transport(robots_handler("", status=503))
        async with httpx.AsyncClient(transport=transport) as client:
            verdict = await RobotsComplianceGate(client, "FeedSync").check(
                "https://example.com/feed"
            )

        assert verdict.allowed is True
        assert verdict.error is not None

    async def test_network_error_fails_open_and_is_cached(self) -> None:
        """网络错误时放行，本次任务内不再重试."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = mock_transport(handler)
        async with httpx.AsyncClient(transport=transport) as client:
            gate = RobotsComplianceGate(client, "FeedSync")
            first = await gate.check("https://example.com/feed")
            second = await gate.check("https://example.com/feed")

        assert first.allowed is True
        assert "connection refused" in (first.error or "")
        assert second.allowed is True
        assert len(transport.requests) == 1

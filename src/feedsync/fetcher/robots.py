"""robots.txt 合规检查."""

import logging
import urllib.robotparser
from dataclasses import dataclass
from urllib.parse import quote, unquote, urlparse, urlunparse

import httpx

from feedsync.fetcher.rate_limiter import origin_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RobotsRule:
    """一条 Allow / Disallow 规则."""

    path: str
    allowed: bool


@dataclass(frozen=True)
class RobotsVerdict:
    """检查结果；`error` 非空表示策略获取失败、按允许处理."""

    allowed: bool
    error: str | None = None


def _request_path(url: str) -> str:
    parsed = urlparse(unquote(url))
    path = urlunparse(("", "", parsed.path, parsed.params, parsed.query, ""))
    return quote(path) or "/"


def select_rules(
    parser: urllib.robotparser.RobotFileParser, user_agent: str
) -> list[RobotsRule]:
    """取出适用于 user_agent 的规则组，找不到时退回 `*` 组."""
    for entry in parser.entries:
        if entry.applies_to(user_agent):
            return [RobotsRule(r.path, r.allowance) for r in entry.rulelines]
    if parser.default_entry is not None:
        return [RobotsRule(r.path, r.allowance) for r in parser.default_entry.rulelines]
    return []


def evaluate(rules: list[RobotsRule], url: str) -> bool:
    """最长前缀匹配的规则生效；长度相同时 Allow 优先；无匹配则允许."""
    path = _request_path(url)
    best: RobotsRule | None = None
    for rule in rules:
        if not path.startswith(rule.path):
            continue
        if (
            best is None
            or len(rule.path) > len(best.path)
            or (len(rule.path) == len(best.path) and rule.allowed)
        ):
            best = rule
    return True if best is None else best.allowed


class RobotsComplianceGate:
    """按源站获取并缓存 robots.txt，判断 URL 是否允许抓取.

    缓存在本实例生命周期内有效（一次更新任务），不做定期刷新。
    获取失败时放行，并把错误带回给调用方。
    `user_agent` 只用于匹配规则组，请求头沿用 client 的设置。
    """

    def __init__(self, client: httpx.AsyncClient, user_agent: str) -> None:
        self.client = client
        self.user_agent = user_agent
        self._cache: dict[str, list[RobotsRule]] = {}

    async def is_allowed(self, url: str) -> bool:
        """URL 是否允许抓取."""
        verdict = await self.check(url)
        return verdict.allowed

    async def check(self, url: str) -> RobotsVerdict:
        """检查 URL，返回带错误信息的结果."""
        origin = origin_of(url)
        rules = self._cache.get(origin)
        if rules is None:
            try:
                rules = await self._fetch_rules(origin)
            except (httpx.HTTPError, ValueError, UnicodeDecodeError) as e:
                # 本次任务内该源站不再重试，按无限制处理
                self._cache[origin] = []
                return RobotsVerdict(allowed=True, error=f"{origin}/robots.txt: {e}")
            self._cache[origin] = rules

        return RobotsVerdict(allowed=evaluate(rules, url))

    async def _fetch_rules(self, origin: str) -> list[RobotsRule]:
        robots_url = f"{origin}/robots.txt"
        response = await self.client.get(robots_url, follow_redirects=True)

        # 4xx 视为没有限制
        if 400 <= response.status_code < 500:
            logger.debug(f"{robots_url} 返回 {response.status_code}，视为无限制")
            return []
        response.raise_for_status()

        parser = urllib.robotparser.RobotFileParser(robots_url)
        parser.parse(response.text.splitlines())
        return select_rules(parser, self.user_agent)

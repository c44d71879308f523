"""文章 HTML 的文本统计工具."""

import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup

# 不参与正文统计的标签
NOISE_TAGS = ("script", "style", "nav", "footer", "header", "aside")

CJK_PATTERN = re.compile(r"[\u4e00-\u9fff\u3040-\u30ff\uac00-\ud7af]")


def html_to_text(html: str) -> str:
    """
    将文章 HTML 转换为纯文本.

    Args:
        html: HTML 内容（也接受普通文本）

    Returns:
        去除标签与空行后的纯文本
    """
    if not html or not html.strip():
        return ""

    soup = BeautifulSoup(html, "lxml")
    for element in soup(NOISE_TAGS):
        element.decompose()

    lines = (line.strip() for line in soup.get_text(separator="\n").split("\n"))
    return "\n".join(line for line in lines if line)


def extract_first_image(html: str, base_url: str | None = None) -> str | None:
    """提取 HTML 中第一张图片的地址，可按 base_url 补全相对路径."""
    if not html:
        return None

    img = BeautifulSoup(html, "lxml").find("img", src=True)
    if img is None:
        return None

    src = img.get("src")
    if isinstance(src, list):
        src = src[0] if src else None
    if not src:
        return None

    return urljoin(base_url, src) if base_url else src


def count_words(text: str) -> int:
    """
    统计文本字数.

    CJK 文字按字符计数，其余按空白分词计数。
    """
    if not text:
        return 0

    cjk_chars = len(CJK_PATTERN.findall(text))
    other_words = len(CJK_PATTERN.sub(" ", text).split())
    return cjk_chars + other_words


def estimate_reading_time(text: str, wpm: int = 200) -> int:
    """估算阅读时间（分钟），最小 1."""
    return max(1, round(count_words(text) / wpm))

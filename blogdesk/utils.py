# blogdesk/utils.py

import re
import logging

import markdown
from flask import current_app

logger = logging.getLogger(__name__)

_NON_SLUG_CHARS = re.compile(r'[^a-z0-9]+')

DEFAULT_MARKDOWN_EXTENSIONS = ['fenced_code', 'tables', 'nl2br', 'sane_lists', 'codehilite', 'extra']


def slugify(title):
    """
    タイトルからURLに使えるスラッグを生成します。

    小文字化した後、英数字以外の連続をハイフン1つに置き換え、先頭と末尾のハイフンを取り除きます。
    例: "Hello, World!! 2024" -> "hello-world-2024"
    """
    slug = _NON_SLUG_CHARS.sub('-', (title or '').lower())
    return slug.strip('-')


def normalize_tag_name(name):
    """タグ名を小文字化し、前後の空白を取り除きます。"""
    return str(name).strip().lower()


def render_markdown(text):
    """MarkdownテキストをHTMLに変換します。"""
    if not text:
        return ''
    try:
        extensions = current_app.config.get('MARKDOWN_EXTENSIONS', DEFAULT_MARKDOWN_EXTENSIONS)
    except RuntimeError:
        # アプリケーションコンテキスト外 (CLIやテスト) ではデフォルトを使用
        extensions = DEFAULT_MARKDOWN_EXTENSIONS
    return markdown.markdown(text, extensions=extensions)

# blogdesk/payloads.py
"""
リクエストの入力値を型付きのペイロードに変換するモジュール

カテゴリやタグは JSON 文字列でもリストでも受け付けますが、ここで一度だけ解析し、
ContentRepository には検証済みの PostPayload だけを渡します。
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from blogdesk.errors import InvalidInput
from blogdesk.models import POST_STATUSES
from blogdesk.utils import normalize_tag_name

logger = logging.getLogger(__name__)

DEFAULT_STATUS = 'draft'

# 半角数字のみ (全角数字や上付き数字は int() に渡さない)
_INTEGER_RE = re.compile(r'[+-]?\d+', re.ASCII)


@dataclass(frozen=True)
class PostPayload:
    title: str
    content: str
    category_ids: List[int]
    tag_names: List[str] = field(default_factory=list)
    excerpt: Optional[str] = None
    status: str = DEFAULT_STATUS
    preview_image: Optional[str] = None


def coerce_int(value):
    """整数または整数として解釈できる値なら int を、そうでなければ None を返します。"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if _INTEGER_RE.fullmatch(text):
            return int(text)
    return None


def _load_list(raw, error_message):
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            raise InvalidInput(error_message)
        if not isinstance(parsed, list):
            raise InvalidInput(error_message)
        return parsed
    raise InvalidInput(error_message)


def parse_category_ids(raw):
    """
    カテゴリIDの一覧を解析します。

    JSON配列の文字列、またはリストを受け付けます。数値として解釈できない要素は黙って捨て、
    重複は取り除きます (順序は保持)。解析できない形式は InvalidInput、
    結果が空の場合も InvalidInput です。
    """
    if raw is None or raw == '':
        raise InvalidInput('カテゴリを1つ以上選択してください。')

    ids = []
    for item in _load_list(raw, 'カテゴリの形式が正しくありません。'):
        value = coerce_int(item)
        if value is None:
            logger.warning(f"Skipping invalid category ID: {item!r}")
            continue
        if value not in ids:
            ids.append(value)

    if not ids:
        raise InvalidInput('カテゴリを1つ以上選択してください。')
    return ids


def parse_tag_names(raw):
    """
    タグ名の一覧を解析します。未指定の場合は空リストです。
    "JS " と "js" は同じタグとして扱われます。
    """
    if raw is None or raw == '':
        return []

    names = []
    for item in _load_list(raw, 'タグの形式が正しくありません。'):
        if item is None:
            continue
        name = normalize_tag_name(item)
        if name and name not in names:
            names.append(name)
    return names


def parse_id_list(raw):
    """ブックマークなどのID一覧を解析します。不正な形式の場合は空リストを返します。"""
    if not raw:
        return []
    try:
        items = _load_list(raw, 'invalid id list')
    except InvalidInput:
        logger.warning(f"Error parsing id list: {raw!r}")
        return []
    ids = []
    for item in items:
        value = coerce_int(item)
        if value is not None and value not in ids:
            ids.append(value)
    return ids


def parse_status(raw):
    """draft / published / private 以外 (未指定を含む) は draft として扱います。"""
    if isinstance(raw, str) and raw.strip().lower() in POST_STATUSES:
        return raw.strip().lower()
    return DEFAULT_STATUS


def _clean_text(value):
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def parse_post_payload(data):
    """
    フォームまたはJSONの入力から PostPayload を組み立てます。

    検証の順序: タイトルと本文 -> カテゴリの形式 -> カテゴリが空でないこと -> タグの形式。
    いずれかに失敗した時点で InvalidInput を送出し、データベースには一切触れません。
    """
    title = _clean_text(data.get('title'))
    content = _clean_text(data.get('content'))
    if title is None or content is None:
        raise InvalidInput('タイトルと本文は必須です。')

    category_ids = parse_category_ids(data.get('categories'))
    tag_names = parse_tag_names(data.get('tags'))

    return PostPayload(
        title=title.strip(),
        content=content,
        category_ids=category_ids,
        tag_names=tag_names,
        excerpt=_clean_text(data.get('excerpt')),
        status=parse_status(data.get('status')),
        preview_image=_clean_text(data.get('preview_image')),
    )


def form_to_dict(form, list_fields=('categories', 'tags')):
    """
    MultiDict (request.form) を parse_post_payload 用の dict に変換します。
    list_fields はJSON配列の文字列ならそのまま、それ以外は送信された値のリストとして扱います。
    """
    data = {}
    for key in form.keys():
        values = form.getlist(key)
        if key in list_fields and not (len(values) == 1 and values[0].lstrip().startswith('[')):
            data[key] = values
        else:
            data[key] = values[0] if values else None
    return data

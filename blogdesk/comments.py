# blogdesk/comments.py
"""
記事詳細ページのコメント一覧の組み立てと、コメント投稿の処理

コメントは閲覧者ごとに表示可否を判定した後、フラットな一覧として返します。
各コメントの reply_count は「表示対象になった直接の返信の数」です。
"""

import logging
from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import aliased

from blogdesk.database import transaction
from blogdesk.errors import InvalidInput, NotFound, Unauthorized
from blogdesk.models import Comment, Post
from blogdesk.payloads import coerce_int
from blogdesk.visibility import can_view_comment, comment_visibility_clause

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 5000


@dataclass(frozen=True)
class CommentView:
    """テンプレートに渡すコメント1件分の表示用データ"""
    id: int
    content: str
    username: Optional[str]
    created_at: datetime
    parent_id: Optional[int] = None
    is_approved: bool = False
    parent_content: Optional[str] = None
    parent_username: Optional[str] = None
    reply_count: int = 0

    @property
    def is_reply(self):
        return self.parent_id is not None


def build_thread(comments, viewer):
    """
    コメントの一覧から閲覧者に見えるものだけを残し、返信数を付けて新しい順に並べます。

    返信数は残ったコメントを1回走査して数えます。見えない返信は数に含めません。
    親が見えない返信も一覧には残ります (親の内容は parent_content で参照できます)。
    """
    visible = [c for c in comments if can_view_comment(c.is_approved, viewer, c.username)]
    counts = Counter(c.parent_id for c in visible if c.parent_id is not None)
    ordered = sorted(visible, key=lambda c: (c.created_at, c.id), reverse=True)
    return [replace(c, reply_count=counts.get(c.id, 0)) for c in ordered]


def thread_roots(views):
    """トップレベルとして表示するコメント。親が一覧に無い返信もここに含めます。"""
    ids = {v.id for v in views}
    return [v for v in views if v.parent_id is None or v.parent_id not in ids]


def replies_to(views, parent_id):
    """指定したコメントへの直接の返信を古い順に返します。"""
    replies = [v for v in views if v.parent_id == parent_id]
    return sorted(replies, key=lambda v: (v.created_at, v.id))


class CommentThreadBuilder:

    def __init__(self, session):
        self.session = session

    def build(self, post_id, viewer):
        """記事のコメントを取得し、build_thread で閲覧者向けの一覧にします。"""
        parent = aliased(Comment)
        stmt = (
            select(Comment, parent.content, parent.username)
            .outerjoin(parent, Comment.parent_id == parent.id)
            .where(Comment.post_id == post_id, comment_visibility_clause(viewer))
        )
        views = [
            CommentView(
                id=comment.id,
                content=comment.content,
                username=comment.username,
                created_at=comment.created_at,
                parent_id=comment.parent_id,
                is_approved=comment.is_approved,
                parent_content=parent_content,
                parent_username=parent_username,
            )
            for comment, parent_content, parent_username in self.session.execute(stmt)
        ]
        return build_thread(views, viewer)

    def submit_comment(self, slug, viewer, content, parent_id=None):
        """
        コメントを投稿します。作成したコメントのIDを返します。

        - ログインしていない場合は Unauthorized
        - 本文が空、または MAX_COMMENT_LENGTH を超える場合は InvalidInput
        - 記事が存在しないか公開されていない場合は NotFound
        - 返信先が同じ記事のコメントでない場合は InvalidInput
        投稿されたコメントは未承認の状態で保存されます。
        """
        if not viewer.is_authenticated:
            raise Unauthorized('コメントを投稿するにはログインが必要です。')

        content = (content or '').strip()
        if not content:
            raise InvalidInput('コメントの内容は必須です。')
        if len(content) > MAX_COMMENT_LENGTH:
            raise InvalidInput(f'コメントは{MAX_COMMENT_LENGTH}文字以内で入力してください。')

        with transaction(self.session, 'submit comment'):
            post_id = self.session.scalar(
                select(Post.id).where(Post.slug == slug, Post.status == 'published')
            )
            if post_id is None:
                raise NotFound('記事が見つからないか、公開されていません。')

            parent_key = None
            if parent_id not in (None, ''):
                parent_key = coerce_int(parent_id)
                if parent_key is None or self.session.scalar(
                    select(Comment.id).where(Comment.id == parent_key, Comment.post_id == post_id)
                ) is None:
                    raise InvalidInput('返信先のコメントが見つかりません。')

            comment = Comment(
                content=content,
                username=viewer.username,
                post_id=post_id,
                parent_id=parent_key,
                is_approved=False,
            )
            self.session.add(comment)
            self.session.flush()
            comment_id = comment.id

        logger.info(f"Comment {comment_id} submitted by {viewer.username} on post {post_id} (awaiting approval).")
        return comment_id

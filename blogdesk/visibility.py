# blogdesk/visibility.py
"""
閲覧者ごとの表示可否を判定するモジュール

判定は純粋関数 (can_view_post / can_view_comment) と、同じ規則をSQLの条件式にした
post_visibility_clause / comment_visibility_clause の2通りで提供します。
一覧・アーカイブ・記事詳細のどこでも同じ規則を使用してください。
"""

from dataclasses import dataclass
from typing import Optional

from flask import current_app
from flask_login import current_user
from sqlalchemy import and_, or_, true

from blogdesk.models import Comment, Post

ADMIN_ROLE = 'admin'


@dataclass(frozen=True)
class Viewer:
    """閲覧者。匿名の場合 username は None です。"""
    username: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_authenticated(self):
        return self.username is not None

    @property
    def is_admin(self):
        return self.is_authenticated and self.role == ADMIN_ROLE


ANONYMOUS = Viewer()


def viewer_from_user(user, admin_role=None):
    """Flask-Login のユーザーオブジェクトから Viewer を作成します。"""
    if user is None or not getattr(user, 'is_authenticated', False):
        return ANONYMOUS
    admin_role = admin_role or ADMIN_ROLE
    role = ADMIN_ROLE if user.has_role(admin_role) else 'user'
    return Viewer(username=user.username, role=role)


def current_viewer():
    """現在のリクエストの閲覧者を返します。"""
    return viewer_from_user(current_user, current_app.config.get('ADMIN_ROLE', ADMIN_ROLE))


def can_view_post(status, viewer, owner_username):
    """
    記事を閲覧できるかを判定します。

    published は全員、private は所有者と管理者のみ。draft は公開側では決して表示しません
    (ダッシュボードは管理者専用のため、そちらでのみ扱います)。
    """
    if status == 'published':
        return True
    if status == 'private':
        return viewer.is_admin or (
            viewer.is_authenticated and owner_username is not None and viewer.username == owner_username
        )
    return False


def can_view_comment(is_approved, viewer, owner_username):
    """
    コメントを閲覧できるかを判定します。

    管理者はすべて、ログインユーザーは承認済みと自分のコメント、匿名ユーザーは承認済みのみ。
    親コメントの可否は継承しません (コメントごとに判定)。
    """
    if viewer.is_admin:
        return True
    if is_approved:
        return True
    return viewer.is_authenticated and owner_username is not None and viewer.username == owner_username


def post_visibility_clause(viewer):
    """can_view_post と同じ規則の WHERE 条件式"""
    published = Post.status == 'published'
    if viewer.is_admin:
        return or_(published, Post.status == 'private')
    if viewer.is_authenticated:
        return or_(published, and_(Post.status == 'private', Post.username == viewer.username))
    return published


def comment_visibility_clause(viewer):
    """can_view_comment と同じ規則の WHERE 条件式"""
    if viewer.is_admin:
        return true()
    if viewer.is_authenticated:
        return or_(Comment.is_approved == true(), Comment.username == viewer.username)
    return Comment.is_approved == true()


def can_view(entity, viewer):
    """Post または Comment のインスタンスについて表示可否を判定します。"""
    if isinstance(entity, Post):
        return can_view_post(entity.status, viewer, entity.username)
    if isinstance(entity, Comment):
        return can_view_comment(entity.is_approved, viewer, entity.username)
    raise TypeError(f'Unsupported entity: {entity!r}')

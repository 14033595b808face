# blogdesk/content.py
"""
記事・カテゴリ・タグ・コメントの書き込みを担当するリポジトリ

複数テーブルにまたがる書き込みはすべて database.transaction の中で行い、
途中で失敗した場合は全体がロールバックされます (カテゴリやタグの関連付けが
中途半端な状態で見えることはありません)。値はすべてバインドパラメータとして渡します。
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import case, delete, func, insert, select

from blogdesk.database import transaction
from blogdesk.errors import Conflict, InvalidInput, NotFound
from blogdesk.models import Category, Comment, Post, Tag, post_categories, post_tags, utcnow
from blogdesk.utils import normalize_tag_name, slugify

logger = logging.getLogger(__name__)


class ContentRepository:
    """ダッシュボードから利用する書き込み操作。セッションはアプリケーションから注入されます。"""

    def __init__(self, session):
        self.session = session

    # --- 記事 ---

    def create_post(self, payload, username):
        """
        記事を作成し、カテゴリとタグを関連付けます。作成した記事のIDを返します。

        payload は payloads.parse_post_payload で検証済みの PostPayload です。
        存在しないタグは作成されます (タグ名は正規化済み)。
        タイトルに英数字が無い場合のスラッグは "post-<id>" です。
        """
        slug = slugify(payload.title)
        with transaction(self.session, 'create post'):
            if slug:
                self._ensure_slug_available(slug)
            self._ensure_categories_exist(payload.category_ids)

            post = Post(
                title=payload.title,
                slug=slug or f'pending-{uuid.uuid4().hex}',
                excerpt=payload.excerpt,
                content_markdown=payload.content,
                status=payload.status,
                preview_image=payload.preview_image,
                username=username,
            )
            self.session.add(post)
            self.session.flush()
            post_id = post.id
            if not slug:
                slug = _fallback_slug(post_id)
                self._ensure_slug_available(slug, exclude_post_id=post_id)
                post.slug = slug

            self._link_categories(post_id, payload.category_ids)
            self._link_tags(post_id, payload.tag_names)

        logger.info(f"Post {post_id} created by {username} (slug={slug}, status={payload.status}).")
        return post_id

    def update_post(self, post_id, payload):
        """
        記事を更新します。カテゴリとタグは送信された内容で完全に置き換えます。
        スラッグはタイトルから毎回再計算されます。
        """
        slug = slugify(payload.title) or _fallback_slug(post_id)
        with transaction(self.session, 'update post'):
            post = self.session.get(Post, post_id)
            if post is None:
                raise NotFound('記事が見つかりません。')
            self._ensure_slug_available(slug, exclude_post_id=post_id)
            self._ensure_categories_exist(payload.category_ids)

            post.title = payload.title
            post.slug = slug
            post.excerpt = payload.excerpt
            post.content_markdown = payload.content
            post.status = payload.status
            post.preview_image = payload.preview_image
            post.updated_at = utcnow()

            self.session.execute(delete(post_categories).where(post_categories.c.post_id == post_id))
            self.session.execute(delete(post_tags).where(post_tags.c.post_id == post_id))
            self._link_categories(post_id, payload.category_ids)
            self._link_tags(post_id, payload.tag_names)

        logger.info(f"Post {post_id} updated (slug={slug}, status={payload.status}).")
        return post_id

    def delete_post(self, post_id):
        """
        記事を削除します。コメント、カテゴリ関連、タグ関連、記事の順に1つのトランザクションで削除します。
        """
        with transaction(self.session, 'delete post'):
            if self.session.scalar(select(Post.id).where(Post.id == post_id)) is None:
                raise NotFound('記事が見つかりません。')

            comments = self.session.execute(delete(Comment).where(Comment.post_id == post_id)).rowcount
            self.session.execute(delete(post_categories).where(post_categories.c.post_id == post_id))
            self.session.execute(delete(post_tags).where(post_tags.c.post_id == post_id))
            self.session.execute(delete(Post).where(Post.id == post_id))

        logger.info(f"Post {post_id} deleted together with {comments} comment(s).")

    # --- カテゴリ ---

    def create_category(self, name, description=None):
        name = self._required_name(name, 'カテゴリ名は必須です。')
        with transaction(self.session, 'create category'):
            self._ensure_category_name_available(name)
            category = Category(name=name, description=description or None)
            self.session.add(category)
            self.session.flush()
            category_id = category.id
        logger.info(f"Category {category_id} ({name}) created.")
        return category_id

    def update_category(self, category_id, name, description=None):
        name = self._required_name(name, 'カテゴリ名は必須です。')
        with transaction(self.session, 'update category'):
            category = self.session.get(Category, category_id)
            if category is None:
                raise NotFound('カテゴリが見つかりません。')
            self._ensure_category_name_available(name, exclude_id=category_id)
            category.name = name
            category.description = description or None
        return category_id

    def delete_category(self, category_id):
        """
        カテゴリを削除します。記事から参照されている場合は Conflict を送出し、
        メッセージと count に参照している記事数を含めます。
        """
        with transaction(self.session, 'delete category'):
            if self.session.get(Category, category_id) is None:
                raise NotFound('カテゴリが見つかりません。')

            post_count = self.session.scalar(
                select(func.count()).select_from(post_categories).where(post_categories.c.category_id == category_id)
            )
            if post_count:
                raise Conflict(
                    f'このカテゴリは {post_count} 件の記事で使用されているため削除できません。'
                    '先に記事のカテゴリを変更してください。',
                    count=post_count,
                )

            self.session.execute(delete(Category).where(Category.id == category_id))
        logger.info(f"Category {category_id} deleted.")

    # --- タグ ---

    def create_tag(self, name):
        name = self._required_name(normalize_tag_name(name or ''), 'タグ名は必須です。')
        with transaction(self.session, 'create tag'):
            self._ensure_tag_name_available(name)
            tag = Tag(name=name)
            self.session.add(tag)
            self.session.flush()
            tag_id = tag.id
        logger.info(f"Tag {tag_id} ({name}) created.")
        return tag_id

    def update_tag(self, tag_id, name):
        name = self._required_name(normalize_tag_name(name or ''), 'タグ名は必須です。')
        with transaction(self.session, 'update tag'):
            tag = self.session.get(Tag, tag_id)
            if tag is None:
                raise NotFound('タグが見つかりません。')
            self._ensure_tag_name_available(name, exclude_id=tag_id)
            tag.name = name
        return tag_id

    def delete_tag(self, tag_id):
        """
        タグを削除します。記事から参照されていても削除でき、関連付けは先に解除されます。
        関連付けを解除した記事の数を返します。
        """
        with transaction(self.session, 'delete tag'):
            if self.session.get(Tag, tag_id) is None:
                raise NotFound('タグが見つかりません。')
            detached = self.session.execute(delete(post_tags).where(post_tags.c.tag_id == tag_id)).rowcount
            self.session.execute(delete(Tag).where(Tag.id == tag_id))
        logger.info(f"Tag {tag_id} deleted, detached from {detached} post(s).")
        return detached

    # --- コメントのモデレーション ---

    def set_comment_approval(self, comment_id, approved):
        with transaction(self.session, 'moderate comment'):
            comment = self.session.get(Comment, comment_id)
            if comment is None:
                raise NotFound('コメントが見つかりません。')
            comment.is_approved = bool(approved)
        logger.info(f"Comment {comment_id} {'approved' if approved else 'unapproved'}.")

    def delete_comment(self, comment_id):
        """コメントを削除します。返信はツリー全体が削除されます。"""
        with transaction(self.session, 'delete comment'):
            comment = self.session.get(Comment, comment_id)
            if comment is None:
                raise NotFound('コメントが見つかりません。')
            self.session.delete(comment)
        logger.info(f"Comment {comment_id} deleted with its replies.")

    # --- 集計・エクスポート ---

    def post_stats(self):
        row = self.session.execute(
            select(
                func.count(Post.id),
                func.count(case((Post.status == 'published', 1))),
                func.count(case((Post.status == 'draft', 1))),
                func.count(case((Post.status == 'private', 1))),
            )
        ).one()
        return {
            'total_posts': row[0],
            'published_posts': row[1],
            'draft_posts': row[2],
            'private_posts': row[3],
            'total_categories': self.session.scalar(select(func.count(Category.id))),
        }

    def comment_stats(self):
        row = self.session.execute(
            select(
                func.count(Comment.id),
                func.count(case((Comment.is_approved.is_(True), 1))),
                func.count(case((Comment.is_approved.is_(False), 1))),
            )
        ).one()
        return {'total_comments': row[0], 'approved_comments': row[1], 'pending_comments': row[2]}

    def tag_stats(self):
        return {
            'total_tags': self.session.scalar(select(func.count(Tag.id))),
            'posts_with_tags': self.session.scalar(select(func.count(func.distinct(post_tags.c.post_id)))),
            'total_posts': self.session.scalar(select(func.count(Post.id))),
        }

    def export_all(self):
        """全データを JSON にできる dict で返します。"""
        return {
            'posts': [_row_to_dict(p) for p in self.session.scalars(select(Post).order_by(Post.id))],
            'categories': [_row_to_dict(c) for c in self.session.scalars(select(Category).order_by(Category.id))],
            'tags': [_row_to_dict(t) for t in self.session.scalars(select(Tag).order_by(Tag.id))],
            'comments': [_row_to_dict(c) for c in self.session.scalars(select(Comment).order_by(Comment.id))],
            'post_categories': [dict(r) for r in self.session.execute(select(post_categories)).mappings()],
            'post_tags': [dict(r) for r in self.session.execute(select(post_tags)).mappings()],
        }

    # --- 内部ヘルパー ---

    @staticmethod
    def _required_name(name, message):
        name = (name or '').strip()
        if not name:
            raise InvalidInput(message)
        return name

    def _ensure_slug_available(self, slug, exclude_post_id=None):
        stmt = select(Post.id).where(Post.slug == slug)
        if exclude_post_id is not None:
            stmt = stmt.where(Post.id != exclude_post_id)
        if self.session.scalar(stmt) is not None:
            raise Conflict(f'スラッグ "{slug}" の記事は既に存在します。タイトルを変更してください。', count=1)

    def _ensure_categories_exist(self, category_ids):
        found = set(self.session.scalars(select(Category.id).where(Category.id.in_(category_ids))))
        missing = [cid for cid in category_ids if cid not in found]
        if missing:
            raise InvalidInput(f'存在しないカテゴリが指定されました: {", ".join(str(m) for m in missing)}')

    def _ensure_category_name_available(self, name, exclude_id=None):
        stmt = select(Category.id).where(func.lower(Category.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        if self.session.scalar(stmt) is not None:
            raise Conflict(f'カテゴリ "{name}" は既に存在します。', count=1)

    def _ensure_tag_name_available(self, name, exclude_id=None):
        stmt = select(Tag.id).where(Tag.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Tag.id != exclude_id)
        if self.session.scalar(stmt) is not None:
            raise Conflict(f'タグ "{name}" は既に存在します。', count=1)

    def _link_categories(self, post_id, category_ids):
        category_ids = list(dict.fromkeys(category_ids))
        if category_ids:
            self.session.execute(
                insert(post_categories),
                [{'post_id': post_id, 'category_id': cid} for cid in category_ids],
            )

    def _link_tags(self, post_id, tag_names):
        linked = set()
        for name in tag_names:
            name = normalize_tag_name(name)
            if not name:
                continue
            tag_id = self._get_or_create_tag(name)
            if tag_id in linked:
                continue
            self.session.execute(insert(post_tags).values(post_id=post_id, tag_id=tag_id))
            linked.add(tag_id)

    def _get_or_create_tag(self, name):
        tag_id = self.session.scalar(select(Tag.id).where(Tag.name == name))
        if tag_id is None:
            tag = Tag(name=name)
            self.session.add(tag)
            self.session.flush()
            tag_id = tag.id
            logger.debug(f"Tag '{name}' created while linking.")
        return tag_id


def _fallback_slug(post_id):
    return f'post-{post_id}'


def _row_to_dict(obj):
    data = {}
    for column in obj.__table__.columns:
        value = getattr(obj, column.key)
        if isinstance(value, datetime):
            value = value.isoformat()
        data[column.key] = value
    return data

# blogdesk/models.py

import uuid
from datetime import datetime

import pytz
from flask_security import UserMixin, RoleMixin
from sqlalchemy import CheckConstraint, func, select
from sqlalchemy.orm import relationship, column_property

from blogdesk.extensions import db


def utcnow():
    return datetime.now(pytz.utc)


POST_STATUSES = ('draft', 'published', 'private')


# 多対多のリレーションシップ用ヘルパーテーブル
# どちら側が削除されても関連行はカスケード削除されます
post_categories = db.Table(
    'post_categories',
    db.Column('post_id', db.Integer, db.ForeignKey('posts.id', ondelete='CASCADE'), primary_key=True),
    db.Column('category_id', db.Integer, db.ForeignKey('categories.id', ondelete='CASCADE'), primary_key=True),
)

post_tags = db.Table(
    'post_tags',
    db.Column('post_id', db.Integer, db.ForeignKey('posts.id', ondelete='CASCADE'), primary_key=True),
    db.Column('tag_id', db.Integer, db.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
)

roles_users = db.Table(
    'roles_users',
    db.Column('user_id', db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    db.Column('role_id', db.Integer, db.ForeignKey('role.id', ondelete='CASCADE'), primary_key=True),
)


class Role(db.Model, RoleMixin):
    """
    ユーザーの役割を表します。'admin' ロールは非公開記事と未承認コメントを含むすべてを閲覧できます。
    """
    __tablename__ = 'role'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False)
    description = db.Column(db.String(256), nullable=True)

    def __repr__(self):
        return f'<Role {self.name}>'


class User(UserMixin, db.Model):
    """
    アプリケーションのユーザー。記事とコメントはユーザー名で所有者を参照します。
    """
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(256), nullable=False)
    fs_uniquifier = db.Column(db.String(255), unique=True, nullable=False)
    active = db.Column(db.Boolean(), default=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    roles = db.relationship('Role', secondary=roles_users, backref=db.backref('users', lazy='dynamic'))

    posts = relationship('Post', back_populates='author', lazy='dynamic', passive_deletes=True)
    comments = relationship('Comment', back_populates='author', lazy='dynamic', passive_deletes=True)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.fs_uniquifier is None:
            self.fs_uniquifier = uuid.uuid4().hex

    def has_role(self, role):
        """指定されたロールを持っているか汎用的にチェックするメソッド"""
        role_name = role if isinstance(role, str) else role.name
        return any(r.name == role_name for r in self.roles)

    def __repr__(self):
        return f'<User {self.username}>'


class Category(db.Model):
    """
    記事を分類するカテゴリ。名前は大文字小文字を区別せず一意として扱います。
    記事から参照されている間は削除できません (ContentRepository.delete_category)。
    """
    __tablename__ = 'categories'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    posts = relationship('Post', secondary=post_categories, back_populates='categories', lazy='dynamic')

    def __repr__(self):
        return f'<Category {self.name}>'


class Tag(db.Model):
    """
    記事のタグ。名前は小文字・前後空白なしに正規化して保存します。
    """
    __tablename__ = 'tags'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    posts = relationship('Post', secondary=post_tags, back_populates='tags', lazy='dynamic')

    def __repr__(self):
        return f'<Tag {self.name}>'


class Post(db.Model):
    """
    ブログ記事。status は draft / published / private のいずれかです。
    削除するとコメント・カテゴリ関連・タグ関連もすべて削除されます。
    """
    __tablename__ = 'posts'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    excerpt = db.Column(db.Text, nullable=True)
    content_markdown = db.Column(db.Text, nullable=False)
    username = db.Column(
        db.String(64),
        db.ForeignKey('users.username', ondelete='SET NULL', onupdate='CASCADE'),
        nullable=True,
        index=True,
    )
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='draft', index=True)
    preview_image = db.Column(db.Text, nullable=True)
    views = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'published', 'private')", name='ck_posts_status'
        ),
    )

    author = relationship('User', back_populates='posts')
    categories = relationship(
        'Category', secondary=post_categories, back_populates='posts', order_by='Category.name'
    )
    tags = relationship('Tag', secondary=post_tags, back_populates='posts', order_by='Tag.name')
    comments = relationship('Comment', back_populates='post', lazy='dynamic', passive_deletes=True)

    @property
    def category_names(self):
        return [c.name for c in self.categories]

    def __repr__(self):
        return f'<Post {self.slug}>'


class Comment(db.Model):
    """
    記事へのコメント。parent_id で同じ記事のコメントに返信できます。
    親コメントを削除すると返信のツリー全体が削除されます。
    """
    __tablename__ = 'comments'
    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)
    username = db.Column(
        db.String(64),
        db.ForeignKey('users.username', ondelete='SET NULL', onupdate='CASCADE'),
        nullable=True,
        index=True,
    )
    post_id = db.Column(db.Integer, db.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey('comments.id', ondelete='CASCADE'), nullable=True, index=True)
    is_approved = db.Column(db.Boolean, default=False, nullable=False, index=True)

    author = relationship('User', back_populates='comments')
    post = relationship('Post', back_populates='comments')
    replies = relationship(
        'Comment',
        backref=db.backref('parent', remote_side=[id]),
        cascade='all, delete-orphan',
        passive_deletes=True,
    )

    def __repr__(self):
        return f'<Comment {self.id} on Post {self.post_id}>'


# 一覧表示用のコメント数 (相関サブクエリ)
Post.comment_count = column_property(
    select(func.count(Comment.id))
    .where(Comment.post_id == Post.id)
    .correlate_except(Comment)
    .scalar_subquery()
)

# blogdesk/browse.py
"""
公開側ページの読み取りクエリ

すべての一覧は visibility.post_visibility_clause を通すので、閲覧者に見えない記事が
一覧・アーカイブ・ブックマークに混ざることはありません。
"""

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from blogdesk.extensions import db
from blogdesk.models import Category, Post, Tag, post_categories, post_tags
from blogdesk.visibility import post_visibility_clause


def visible_posts(viewer, author=None, category=None, tag=None, ids=None):
    """閲覧者に見える記事を新しい順に返すクエリ。各条件は指定されたものだけ適用します。"""
    query = Post.query.options(selectinload(Post.categories)).filter(post_visibility_clause(viewer))
    if author is not None:
        query = query.filter(Post.username == author)
    if category is not None:
        query = query.filter(Post.categories.any(Category.id == category.id))
    if tag is not None:
        query = query.filter(Post.tags.any(Tag.id == tag.id))
    if ids is not None:
        query = query.filter(Post.id.in_(ids))
    return query.order_by(Post.created_at.desc(), Post.id.desc())


def paginate_posts(query, page, per_page):
    return query.paginate(page=page, per_page=per_page, error_out=False)


def page_summary(posts):
    """ページ内の記事から著者とカテゴリの重複なし一覧を作ります (サイドバー用)。"""
    authors = sorted({p.username for p in posts if p.username})
    categories = sorted({c.name for p in posts for c in p.categories})
    return authors, categories


def category_archive(viewer):
    """
    (Category, 見える記事数) のリスト。見える記事が1件もないカテゴリは含めません。
    """
    visible = post_visibility_clause(viewer)
    return (
        db.session.query(Category, func.count(Post.id))
        .join(post_categories, post_categories.c.category_id == Category.id)
        .join(Post, Post.id == post_categories.c.post_id)
        .filter(visible)
        .group_by(Category.id)
        .order_by(Category.name)
        .all()
    )


def tag_archive(viewer):
    """(Tag, 見える記事数) のリスト。"""
    visible = post_visibility_clause(viewer)
    return (
        db.session.query(Tag, func.count(Post.id))
        .join(post_tags, post_tags.c.tag_id == Tag.id)
        .join(Post, Post.id == post_tags.c.post_id)
        .filter(visible)
        .group_by(Tag.id)
        .order_by(Tag.name)
        .all()
    )


def find_post_by_slug(slug):
    """ステータスを問わずスラッグで記事を探します。表示可否の判定は呼び出し側で行います。"""
    return Post.query.filter_by(slug=slug).first()

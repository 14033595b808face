# blogdesk/dashboard/routes.py

from flask import render_template
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from blogdesk.content import ContentRepository
from blogdesk.decorators import admin_required
from blogdesk.errors import NotFound
from blogdesk.extensions import db
from blogdesk.models import Category, Comment, Post, Tag, post_categories, post_tags
from .forms import CategoryForm, PostForm, TagForm

from . import bp


# --- 管理ダッシュボードのルート ---
@bp.route('/')
@admin_required
def index():
    repo = ContentRepository(db.session)
    recent_posts = (
        Post.query.options(selectinload(Post.categories))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(5)
        .all()
    )
    recent_comments = (
        Comment.query.options(selectinload(Comment.post))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .limit(5)
        .all()
    )
    return render_template('dashboard/index.html',
                           title='管理ダッシュボード',
                           active='dashboard',
                           post_stats=repo.post_stats(),
                           comment_stats=repo.comment_stats(),
                           recent_posts=recent_posts,
                           recent_comments=recent_comments)


# --- 投稿管理 ---
@bp.route('/posts')
@admin_required
def list_posts():
    posts = (
        Post.query.options(selectinload(Post.categories))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .all()
    )
    categories = Category.query.order_by(Category.name).all()
    return render_template('dashboard/posts.html',
                           title='投稿管理',
                           active='posts',
                           posts=posts,
                           stats=ContentRepository(db.session).post_stats(),
                           categories=categories)


@bp.route('/posts/create')
@admin_required
def create_post():
    form = PostForm()
    return render_template('dashboard/post_form.html', form=form, post=None, title='新規投稿', active='posts')


@bp.route('/posts/edit/<int:post_id>')
@admin_required
def edit_post(post_id):
    post = db.session.get(Post, post_id)
    if post is None:
        raise NotFound('記事が見つかりません。')

    form = PostForm(obj=post)
    form.content.data = post.content_markdown
    form.categories.data = [c.id for c in post.categories]
    form.tags.data = ', '.join(t.name for t in post.tags)
    return render_template('dashboard/post_form.html', form=form, post=post, title='投稿編集', active='posts')


# --- コメント管理 ---
@bp.route('/comments')
@admin_required
def list_comments():
    comments = (
        Comment.query.options(selectinload(Comment.post))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )
    return render_template('dashboard/comments.html',
                           title='コメント管理',
                           active='comments',
                           comments=comments,
                           stats=ContentRepository(db.session).comment_stats())


# --- カテゴリ管理 ---
@bp.route('/categories')
@admin_required
def list_categories():
    categories = (
        db.session.query(Category, func.count(post_categories.c.post_id))
        .outerjoin(post_categories, post_categories.c.category_id == Category.id)
        .group_by(Category.id)
        .order_by(Category.name)
        .all()
    )
    return render_template('dashboard/categories.html',
                           title='カテゴリ管理',
                           active='categories',
                           categories=categories,
                           form=CategoryForm())


# --- タグ管理 ---
@bp.route('/tags')
@admin_required
def list_tags():
    tags = (
        db.session.query(Tag, func.count(post_tags.c.post_id))
        .outerjoin(post_tags, post_tags.c.tag_id == Tag.id)
        .group_by(Tag.id)
        .order_by(Tag.name)
        .all()
    )
    return render_template('dashboard/tags.html',
                           title='タグ管理',
                           active='tags',
                           tags=tags,
                           stats=ContentRepository(db.session).tag_stats(),
                           form=TagForm())

# blogdesk/routes/posts.py

import logging

from flask import Blueprint, render_template, url_for, redirect, flash, request

from blogdesk.browse import find_post_by_slug
from blogdesk.comments import CommentThreadBuilder, thread_roots, replies_to
from blogdesk.errors import Forbidden, NotFound
from blogdesk.extensions import db
from blogdesk.forms import CommentForm
from blogdesk.visibility import can_view_post, current_viewer

logger = logging.getLogger(__name__)

posts_bp = Blueprint('posts', __name__)


# 記事詳細ページ
@posts_bp.route('/post/<slug>')
def post_detail(slug):
    viewer = current_viewer()
    post = find_post_by_slug(slug)
    if post is None or post.status not in ('published', 'private'):
        raise NotFound('記事が見つかりません。')
    if not can_view_post(post.status, viewer, post.username):
        raise Forbidden('この記事は非公開です。所有者のみ閲覧できます。')

    comments = CommentThreadBuilder(db.session).build(post.id, viewer)

    return render_template('blog/post.html',
                           post=post,
                           title=post.title,
                           comments=comments,
                           root_comments=thread_roots(comments),
                           replies_to=replies_to,
                           comment_form=CommentForm(),
                           can_comment=post.status == 'published')


# コメント投稿 (ログインが必要)
@posts_bp.route('/post/<slug>/comment', methods=['POST'])
def add_comment(slug):
    form = CommentForm()
    CommentThreadBuilder(db.session).submit_comment(
        slug,
        current_viewer(),
        form.content.data or request.form.get('content'),
        parent_id=form.parent_id.data or request.form.get('parent_id'),
    )
    flash('コメントが正常に投稿されました。承認後表示されます。', 'success')
    return redirect(url_for('posts.post_detail', slug=slug))

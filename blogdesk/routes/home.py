# blogdesk/routes/home.py

import logging

from flask import Blueprint, render_template, current_app, url_for, redirect, flash, request, jsonify
from werkzeug.exceptions import HTTPException

from blogdesk.browse import visible_posts, paginate_posts, page_summary
from blogdesk.errors import BlogError, Conflict, Unauthorized
from blogdesk.extensions import db
from blogdesk.payloads import parse_id_list
from blogdesk.visibility import current_viewer

logger = logging.getLogger(__name__)

# ブループリントの定義
home_bp = Blueprint('home', __name__)


def render_post_list(query, endpoint, title, **url_args):
    """記事一覧ページ共通の描画処理 (ページネーションとサイドバーの集計)"""
    page = request.args.get('page', 1, type=int)
    posts_pagination = paginate_posts(query, page, current_app.config.get('POSTS_PER_PAGE', 10))
    posts = posts_pagination.items
    authors, categories = page_summary(posts)

    next_url = url_for(endpoint, page=posts_pagination.next_num, **url_args) if posts_pagination.has_next else None
    prev_url = url_for(endpoint, page=posts_pagination.prev_num, **url_args) if posts_pagination.has_prev else None

    return render_template('blog/index.html',
                           posts=posts,
                           posts_pagination=posts_pagination,
                           authors=authors,
                           categories=categories,
                           title=title,
                           next_url=next_url,
                           prev_url=prev_url)


# ホームページ（最新の投稿を表示）
@home_bp.route('/')
@home_bp.route('/index')
def index():
    return render_post_list(visible_posts(current_viewer()), 'home.index', 'ホーム')


# 著者別記事一覧
@home_bp.route('/author/<username>')
def posts_by_author(username):
    query = visible_posts(current_viewer(), author=username)
    return render_post_list(query, 'home.posts_by_author', f'{username} の記事', username=username)


# ブックマーク (ブラウザ側で保存したIDの一覧を ?ids=[1,2,3] で受け取る)
@home_bp.route('/bookmarks')
def bookmarks():
    ids = parse_id_list(request.args.get('ids'))
    posts = visible_posts(current_viewer(), ids=ids).all() if ids else []
    return render_template('blog/bookmarks.html', posts=posts, title='ブックマーク')


def wants_json_response():
    """ダッシュボードAPIやJSONのリクエストにはJSONでエラーを返す"""
    if request.path.startswith('/dashboard/api'):
        return True
    if request.is_json:
        return True
    best = request.accept_mimetypes.best_match(['application/json', 'text/html'])
    return best == 'application/json' and request.accept_mimetypes[best] > request.accept_mimetypes['text/html']


def error_response(status_code, message, **extra):
    if wants_json_response():
        body = {'success': False, 'error': message}
        body.update(extra)
        return jsonify(body), status_code
    return render_template('errors/error.html', code=status_code, message=message), status_code


# その他の共通処理（例: エラーハンドリング）
@home_bp.app_errorhandler(BlogError)
def handle_blog_error(e):
    if e.status_code >= 500:
        current_app.logger.error(f"OPERATION_FAILED: {request.method} {request.path}: {e.message}")
    else:
        current_app.logger.info(f"{e.__class__.__name__}: {request.method} {request.path}: {e.message}")

    if isinstance(e, Unauthorized) and not wants_json_response():
        flash(e.message, 'warning')
        return redirect(url_for('security.login', next=request.full_path))

    extra = {'count': e.count} if isinstance(e, Conflict) else {}
    return error_response(e.status_code, e.message, **extra)


@home_bp.app_errorhandler(403)
def forbidden(e):
    current_app.logger.warning(f"ACCESS_DENIED: {request.path}")
    return error_response(403, 'アクセス権限がありません。')


@home_bp.app_errorhandler(404)
def page_not_found(e):
    current_app.logger.warning(f"PAGE_NOT_FOUND: {request.path}")
    return error_response(404, 'ページが見つかりません。')


@home_bp.app_errorhandler(HTTPException)
def http_error(e):
    return error_response(e.code or 500, e.description or e.name)


@home_bp.app_errorhandler(500)
def internal_server_error(e):
    db.session.rollback()
    current_app.logger.exception(f"INTERNAL_SERVER_ERROR: {e}")
    return error_response(500, 'サーバーエラーが発生しました。')

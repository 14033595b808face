# blogdesk/dashboard/api.py
"""
ダッシュボードの JSON API

書き込みはすべて ContentRepository に委譲します。失敗時の応答
({"success": false, "error": ...} と対応するステータスコード) はエラーハンドラが生成します。
"""

import json
import logging

from flask import jsonify, request, Response
from flask_login import current_user

from blogdesk.content import ContentRepository
from blogdesk.decorators import admin_required
from blogdesk.errors import InvalidInput
from blogdesk.extensions import db
from blogdesk.payloads import form_to_dict, parse_post_payload
from blogdesk.utils import render_markdown

from . import bp

logger = logging.getLogger(__name__)


def request_data():
    """JSON ボディ、なければフォームの内容を dict で返します。"""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return form_to_dict(request.form)


def repository():
    return ContentRepository(db.session)


# --- 記事 ---
@bp.route('/api/posts', methods=['POST'])
@admin_required
def api_create_post():
    payload = parse_post_payload(request_data())
    post_id = repository().create_post(payload, current_user.username)
    return jsonify({'success': True, 'id': post_id, 'message': '記事を作成しました。'}), 201


@bp.route('/api/posts/<int:post_id>', methods=['PUT'])
@admin_required
def api_update_post(post_id):
    payload = parse_post_payload(request_data())
    repository().update_post(post_id, payload)
    return jsonify({'success': True, 'id': post_id, 'message': '記事を更新しました。'})


@bp.route('/api/posts/<int:post_id>', methods=['DELETE'])
@admin_required
def api_delete_post(post_id):
    repository().delete_post(post_id)
    return jsonify({'success': True, 'message': '記事を削除しました。'})


# --- コメント ---
@bp.route('/api/comments/<int:comment_id>/<action>', methods=['PUT'])
@admin_required
def api_moderate_comment(comment_id, action):
    if action not in ('approve', 'reject'):
        raise InvalidInput(f'不明な操作です: {action}')
    repository().set_comment_approval(comment_id, action == 'approve')
    return jsonify({'success': True})


@bp.route('/api/comments/<int:comment_id>', methods=['DELETE'])
@admin_required
def api_delete_comment(comment_id):
    repository().delete_comment(comment_id)
    return jsonify({'success': True})


# --- カテゴリ ---
@bp.route('/api/categories', methods=['POST'])
@admin_required
def api_create_category():
    data = request_data()
    category_id = repository().create_category(data.get('name'), data.get('description'))
    return jsonify({'success': True, 'id': category_id}), 201


@bp.route('/api/categories/<int:category_id>', methods=['PUT'])
@admin_required
def api_update_category(category_id):
    data = request_data()
    repository().update_category(category_id, data.get('name'), data.get('description'))
    return jsonify({'success': True, 'id': category_id})


@bp.route('/api/categories/<int:category_id>', methods=['DELETE'])
@admin_required
def api_delete_category(category_id):
    repository().delete_category(category_id)
    return jsonify({'success': True})


# --- タグ ---
@bp.route('/api/tags', methods=['POST'])
@admin_required
def api_create_tag():
    tag_id = repository().create_tag(request_data().get('name'))
    return jsonify({'success': True, 'id': tag_id}), 201


@bp.route('/api/tags/<int:tag_id>', methods=['PUT'])
@admin_required
def api_update_tag(tag_id):
    repository().update_tag(tag_id, request_data().get('name'))
    return jsonify({'success': True, 'id': tag_id})


@bp.route('/api/tags/<int:tag_id>', methods=['DELETE'])
@admin_required
def api_delete_tag(tag_id):
    detached = repository().delete_tag(tag_id)
    message = f'タグを削除しました ({detached} 件の記事から関連付けを解除しました)。' if detached else 'タグを削除しました。'
    return jsonify({'success': True, 'detached': detached, 'message': message})


# --- その他 ---
@bp.route('/api/markdown-preview', methods=['POST'])
@admin_required
def api_markdown_preview():
    text = request_data().get('markdown')
    if not text:
        raise InvalidInput('Markdownの内容は必須です。')
    return jsonify({'html': render_markdown(text)})


@bp.route('/api/download-all-data')
@admin_required
def api_download_all_data():
    data = repository().export_all()
    logger.info(f"Blog data exported by {current_user.username}.")
    return Response(
        json.dumps(data, ensure_ascii=False, indent=2),
        mimetype='application/json',
        headers={'Content-Disposition': 'attachment; filename="blog_data.json"'},
    )

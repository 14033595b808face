# blogdesk/routes/tags.py

from flask import Blueprint, render_template

from blogdesk.browse import tag_archive, visible_posts
from blogdesk.models import Tag
from blogdesk.routes.home import render_post_list
from blogdesk.utils import normalize_tag_name
from blogdesk.visibility import current_viewer

tags_bp = Blueprint('tags', __name__)


# タグ一覧
@tags_bp.route('/tags')
def archive():
    entries = tag_archive(current_viewer())
    return render_template('blog/archive.html', entries=entries, kind='tag', title='タグ一覧')


# タグごとの投稿一覧 (タグ名は正規化してから検索)
@tags_bp.route('/tag/<name>')
def posts_by_tag(name):
    tag = Tag.query.filter_by(name=normalize_tag_name(name)).first_or_404()
    query = visible_posts(current_viewer(), tag=tag)
    return render_post_list(query, 'tags.posts_by_tag', f'タグ: {tag.name}', name=tag.name)

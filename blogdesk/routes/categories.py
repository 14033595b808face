# blogdesk/routes/categories.py

from flask import Blueprint, render_template

from blogdesk.browse import category_archive, visible_posts
from blogdesk.models import Category
from blogdesk.routes.home import render_post_list
from blogdesk.visibility import current_viewer

# 公開サイトのカテゴリ関連ページ
categories_bp = Blueprint('categories', __name__)


# カテゴリ一覧 (見える記事が1件以上あるカテゴリのみ)
@categories_bp.route('/categories')
def archive():
    entries = category_archive(current_viewer())
    return render_template('blog/archive.html', entries=entries, kind='category', title='カテゴリ一覧')


# カテゴリごとの投稿一覧
@categories_bp.route('/category/<name>')
def posts_by_category(name):
    category = Category.query.filter_by(name=name).first_or_404()
    query = visible_posts(current_viewer(), category=category)
    return render_post_list(query, 'categories.posts_by_category', f'カテゴリ: {category.name}', name=category.name)

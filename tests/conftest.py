# tests/conftest.py
import sys
import os

# プロジェクトのルートディレクトリをPythonのパスに追加
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
from flask import g

from config import TestingConfig
from blogdesk import create_app
from blogdesk.content import ContentRepository
from blogdesk.extensions import db
from blogdesk.models import Category, Comment, Post, Role, Tag, User
from blogdesk.payloads import PostPayload
from blogdesk.visibility import Viewer


@pytest.fixture(scope='function')
def app():
    """テスト用Flaskアプリケーションのインスタンスを生成するフィクスチャ (テストごとに空のDB)"""
    app = create_app(TestingConfig)

    # テスト中はアプリケーションコンテキストを使い回すため、g に残るログインユーザーを毎回破棄する
    def reset_login_cache():
        g.pop('_login_user', None)

    app.before_request_funcs.setdefault(None, []).insert(0, reset_login_cache)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """テストクライアントを生成するフィクスチャ"""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """CLIコマンドランナーを生成するフィクスチャ"""
    return app.test_cli_runner()


@pytest.fixture(scope='function')
def session(app):
    return db.session


@pytest.fixture
def repo(session):
    return ContentRepository(session)


@pytest.fixture
def make_user(session):
    """ユーザーを作成するファクトリ。role を指定するとそのロールを付与します。"""
    def _make_user(username, role=None):
        user = User(username=username, email=f'{username}@example.com', password='not-a-real-hash', active=True)
        if role:
            role_obj = Role.query.filter_by(name=role).first() or Role(name=role)
            user.roles.append(role_obj)
        session.add(user)
        session.commit()
        return user
    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user('admin', role='admin')


@pytest.fixture
def alice(make_user):
    return make_user('alice', role='user')


@pytest.fixture
def bob(make_user):
    return make_user('bob', role='user')


@pytest.fixture
def login(client):
    """セッションにユーザーIDを直接書き込んでログイン状態にするヘルパー"""
    def _login(user):
        with client.session_transaction() as sess:
            sess['_user_id'] = user.fs_uniquifier
            sess['_fresh'] = True
        return client
    return _login


@pytest.fixture
def category(session):
    category = Category(name='Technology', description='Tech posts')
    session.add(category)
    session.commit()
    return category


@pytest.fixture
def make_post(repo, category):
    """ContentRepository 経由で記事を作成するファクトリ。作成した Post を返します。"""
    def _make_post(title, username, status='published', tags=(), category_ids=None):
        payload = PostPayload(
            title=title,
            content=f'# {title}\n\nbody',
            category_ids=category_ids or [category.id],
            tag_names=list(tags),
            status=status,
        )
        post_id = repo.create_post(payload, username)
        return db.session.get(Post, post_id)
    return _make_post


@pytest.fixture
def make_comment(session):
    def _make_comment(post, username, content='comment', approved=True, parent=None):
        comment = Comment(
            content=content,
            username=username,
            post_id=post.id,
            parent_id=parent.id if parent else None,
            is_approved=approved,
        )
        session.add(comment)
        session.commit()
        return comment
    return _make_comment


@pytest.fixture
def viewers():
    return {
        'anonymous': Viewer(),
        'alice': Viewer(username='alice', role='user'),
        'bob': Viewer(username='bob', role='user'),
        'admin': Viewer(username='admin', role='admin'),
    }


def count_rows(model):
    return db.session.query(model).count()


@pytest.fixture
def counts():
    """Post / Tag / Comment と関連テーブルの行数をまとめて返すヘルパー"""
    from blogdesk.models import post_categories, post_tags

    def _counts():
        return {
            'posts': count_rows(Post),
            'tags': count_rows(Tag),
            'comments': count_rows(Comment),
            'post_categories': db.session.query(post_categories).count(),
            'post_tags': db.session.query(post_tags).count(),
        }
    return _counts

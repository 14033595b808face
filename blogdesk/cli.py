# blogdesk/cli.py

import click
from flask import current_app
from flask.cli import with_appcontext
from flask_security.utils import hash_password
from sqlalchemy.exc import SQLAlchemyError

from blogdesk.extensions import db, security
from blogdesk.models import Category, Tag

DEFAULT_CATEGORIES = [
    ('Technology', 'Posts about technology and software.'),
    ('Tutorials', 'Step-by-step guides.'),
    ('Opinion', 'Thoughts and commentary.'),
]
DEFAULT_TAGS = ['javascript', 'nodejs', 'programming', 'webdev', 'database', 'tutorial']


@click.group()
def blog():
    """ブログの初期化と管理コマンド."""
    pass


@blog.command("init-db")
@with_appcontext
def init_db():
    """データベーステーブルを作成します。"""
    db.create_all()
    click.echo("データベーステーブルを作成しました。")


@blog.command("seed")
@with_appcontext
def seed():
    """デフォルトのロール・カテゴリ・タグを作成します (既存のものはスキップ)。"""
    admin_role = current_app.config.get('ADMIN_ROLE', 'admin')
    try:
        security.datastore.find_or_create_role(admin_role, description='Administrator with full access.')
        security.datastore.find_or_create_role('user', description='Standard user.')

        created_categories = 0
        for name, description in DEFAULT_CATEGORIES:
            if Category.query.filter_by(name=name).first() is None:
                db.session.add(Category(name=name, description=description))
                created_categories += 1

        created_tags = 0
        for name in DEFAULT_TAGS:
            if Tag.query.filter_by(name=name).first() is None:
                db.session.add(Tag(name=name))
                created_tags += 1

        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise click.ClickException(f"初期データの作成中にエラーが発生しました: {e}")

    click.echo(f"ロール ({admin_role}, user)、カテゴリ {created_categories} 件、タグ {created_tags} 件を作成しました。")


@blog.command("create-admin")
@click.option('--username', default='admin', help='管理者ユーザーのユーザー名.')
@click.option('--email', default='admin@example.com', help='管理者ユーザーのメールアドレス.')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True,
              help='管理者ユーザーのパスワード.')
@with_appcontext
def create_admin(username, email, password):
    """管理者ユーザーを作成します。"""
    datastore = security.datastore
    if datastore.find_user(email=email) or datastore.find_user(username=username):
        raise click.ClickException(f"ユーザー '{username}' ({email}) は既に存在します。")

    admin_role = datastore.find_or_create_role(current_app.config.get('ADMIN_ROLE', 'admin'))
    try:
        datastore.create_user(
            username=username,
            email=email,
            password=hash_password(password),
            active=True,
            roles=[admin_role],
        )
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise click.ClickException(f"管理者ユーザーの作成中にエラーが発生しました: {e}")

    click.echo(f"管理者ユーザー '{username}' (メール: '{email}') が正常に作成されました。")

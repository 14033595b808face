# tests/test_cli.py
from blogdesk.models import Category, Role, Tag, User


def test_init_db(runner):
    result = runner.invoke(args=['blog', 'init-db'])
    assert result.exit_code == 0


def test_seed_is_idempotent(runner):
    first = runner.invoke(args=['blog', 'seed'])
    assert first.exit_code == 0, first.output
    assert sorted(c.name for c in Category.query.all()) == ['Opinion', 'Technology', 'Tutorials']
    assert Tag.query.count() == 6
    assert {r.name for r in Role.query.all()} == {'admin', 'user'}

    second = runner.invoke(args=['blog', 'seed'])
    assert second.exit_code == 0
    assert Category.query.count() == 3
    assert Tag.query.count() == 6


def test_create_admin(runner):
    result = runner.invoke(args=[
        'blog', 'create-admin', '--username', 'root', '--email', 'root@example.com', '--password', 'secret123',
    ])
    assert result.exit_code == 0, result.output

    user = User.query.filter_by(username='root').one()
    assert user.has_role('admin')
    assert user.password != 'secret123'

    again = runner.invoke(args=[
        'blog', 'create-admin', '--username', 'root', '--email', 'root@example.com', '--password', 'secret123',
    ])
    assert again.exit_code != 0
    assert User.query.count() == 1

# tests/test_dashboard_api.py
import json

import pytest

from blogdesk.extensions import db
from blogdesk.models import Category, Comment, Post, Tag, post_categories, post_tags


@pytest.fixture
def admin_client(client, login, admin_user):
    return login(admin_user)


class TestAccessControl:
    def test_anonymous_api_request_gets_401_json(self, client):
        response = client.post('/dashboard/api/posts', json={'title': 'T'})
        assert response.status_code == 401
        assert response.get_json()['success'] is False

    def test_non_admin_api_request_gets_403_json(self, client, login, alice):
        login(alice)
        response = client.delete('/dashboard/api/posts/1')
        assert response.status_code == 403
        assert response.get_json() == {'success': False, 'error': 'この操作を行う権限がありません。'}

    def test_anonymous_page_request_redirects_to_login(self, client):
        response = client.get('/dashboard/')
        assert response.status_code == 302
        assert '/security/login' in response.headers['Location']

    def test_non_admin_page_request_is_forbidden(self, client, login, alice):
        login(alice)
        assert client.get('/dashboard/posts').status_code == 403


class TestPostsApi:
    def test_create_post_with_json_strings(self, admin_client, category):
        response = admin_client.post('/dashboard/api/posts', json={
            'title': 'API Post',
            'content': '# Hi',
            'categories': json.dumps([category.id]),
            'tags': json.dumps(['Flask', 'flask ']),
            'status': 'published',
        })
        assert response.status_code == 201
        body = response.get_json()
        assert body['success'] is True

        post = db.session.get(Post, body['id'])
        assert post.slug == 'api-post'
        assert post.username == 'admin'
        assert post.category_names == ['Technology']
        assert [t.name for t in post.tags] == ['flask']

    def test_create_post_with_native_lists_and_default_status(self, admin_client, category):
        response = admin_client.post('/dashboard/api/posts', json={
            'title': 'Native', 'content': 'C', 'categories': [str(category.id), 'junk'], 'status': 'bogus',
        })
        assert response.status_code == 201
        assert db.session.get(Post, response.get_json()['id']).status == 'draft'

    def test_create_post_from_form_data(self, admin_client, category):
        response = admin_client.post('/dashboard/api/posts', data={
            'title': 'Form Post', 'content': 'C', 'categories': str(category.id),
        })
        assert response.status_code == 201

    @pytest.mark.parametrize('data, message', [
        ({'title': 'T', 'content': 'C', 'categories': 'not-json', 'tags': '["t"]'}, 'カテゴリの形式が正しくありません。'),
        ({'title': 'T', 'content': 'C', 'categories': '[]'}, 'カテゴリを1つ以上選択してください。'),
        ({'title': 'T', 'categories': '[1]'}, 'タイトルと本文は必須です。'),
    ])
    def test_invalid_payload_writes_nothing(self, admin_client, category, counts, data, message):
        before = counts()
        response = admin_client.post('/dashboard/api/posts', json=data)
        assert response.status_code == 400
        assert response.get_json() == {'success': False, 'error': message}
        assert counts() == before

    def test_duplicate_title_conflicts(self, admin_client, category):
        data = {'title': 'Twice', 'content': 'C', 'categories': [category.id]}
        assert admin_client.post('/dashboard/api/posts', json=data).status_code == 201
        assert admin_client.post('/dashboard/api/posts', json=data).status_code == 409

    def test_update_and_delete(self, admin_client, category, make_comment):
        post_id = admin_client.post('/dashboard/api/posts', json={
            'title': 'Before', 'content': 'C', 'categories': [category.id], 'tags': ['a'],
        }).get_json()['id']
        make_comment(db.session.get(Post, post_id), 'admin')

        response = admin_client.put(f'/dashboard/api/posts/{post_id}', json={
            'title': 'After', 'content': 'C2', 'categories': [category.id], 'tags': ['b'], 'status': 'published',
        })
        assert response.status_code == 200
        post = db.session.get(Post, post_id)
        assert post.slug == 'after'
        assert [t.name for t in post.tags] == ['b']

        assert admin_client.delete(f'/dashboard/api/posts/{post_id}').status_code == 200
        assert Post.query.count() == 0
        assert Comment.query.count() == 0
        assert db.session.query(post_categories).count() == 0
        assert db.session.query(post_tags).count() == 0

    def test_missing_post_is_404(self, admin_client, category):
        data = {'title': 'Ghost', 'content': 'C', 'categories': [category.id]}
        assert admin_client.put('/dashboard/api/posts/999', json=data).status_code == 404
        response = admin_client.delete('/dashboard/api/posts/999')
        assert response.status_code == 404
        assert response.get_json()['success'] is False


class TestCommentsApi:
    def test_approve_and_reject(self, admin_client, alice, make_post, make_comment):
        comment = make_comment(make_post('Post', 'alice'), 'alice', approved=False)
        comment_id = comment.id

        assert admin_client.put(f'/dashboard/api/comments/{comment_id}/approve').get_json() == {'success': True}
        assert db.session.get(Comment, comment_id).is_approved is True

        assert admin_client.put(f'/dashboard/api/comments/{comment_id}/reject').status_code == 200
        assert db.session.get(Comment, comment_id).is_approved is False

    def test_unknown_action_and_comment(self, admin_client, alice, make_post, make_comment):
        comment_id = make_comment(make_post('Post', 'alice'), 'alice').id
        assert admin_client.put(f'/dashboard/api/comments/{comment_id}/archive').status_code == 400
        assert admin_client.put('/dashboard/api/comments/999/approve').status_code == 404
        assert admin_client.delete('/dashboard/api/comments/999').status_code == 404

    def test_delete_removes_reply_subtree(self, admin_client, alice, make_post, make_comment):
        post = make_post('Post', 'alice')
        root = make_comment(post, 'alice')
        child = make_comment(post, 'alice', parent=root)
        make_comment(post, 'alice', parent=child)
        root_id = root.id

        assert admin_client.delete(f'/dashboard/api/comments/{root_id}').status_code == 200
        assert Comment.query.count() == 0


class TestCategoriesApi:
    def test_create_update_delete(self, admin_client):
        response = admin_client.post('/dashboard/api/categories', json={'name': 'Opinion', 'description': 'Views'})
        assert response.status_code == 201
        category_id = response.get_json()['id']

        assert admin_client.post('/dashboard/api/categories', json={'name': 'opinion'}).status_code == 409
        assert admin_client.post('/dashboard/api/categories', json={'name': ''}).status_code == 400

        assert admin_client.put(f'/dashboard/api/categories/{category_id}', json={'name': 'Opinions'}).status_code == 200
        assert db.session.get(Category, category_id).name == 'Opinions'

        assert admin_client.delete(f'/dashboard/api/categories/{category_id}').status_code == 200
        assert db.session.get(Category, category_id) is None

    def test_delete_guard_reports_count(self, admin_client, alice, category, make_post):
        make_post('One', 'alice')
        make_post('Two', 'alice', status='draft')
        make_post('Three', 'alice', status='private')

        response = admin_client.delete(f'/dashboard/api/categories/{category.id}')

        assert response.status_code == 409
        body = response.get_json()
        assert body['count'] == 3
        assert '3 件' in body['error']
        assert Category.query.count() == 1


class TestTagsApi:
    def test_create_normalizes_and_rejects_duplicates(self, admin_client):
        response = admin_client.post('/dashboard/api/tags', json={'name': '  WebDev '})
        assert response.status_code == 201
        assert db.session.get(Tag, response.get_json()['id']).name == 'webdev'
        assert admin_client.post('/dashboard/api/tags', json={'name': 'webdev'}).status_code == 409

    def test_update(self, admin_client):
        tag_id = admin_client.post('/dashboard/api/tags', json={'name': 'old'}).get_json()['id']
        assert admin_client.put(f'/dashboard/api/tags/{tag_id}', json={'name': 'New'}).status_code == 200
        assert db.session.get(Tag, tag_id).name == 'new'
        assert admin_client.put('/dashboard/api/tags/999', json={'name': 'x'}).status_code == 404

    def test_delete_detaches_posts(self, admin_client, alice, make_post):
        make_post('One', 'alice', tags=['temp'])
        make_post('Two', 'alice', tags=['temp'])
        tag_id = Tag.query.filter_by(name='temp').one().id

        response = admin_client.delete(f'/dashboard/api/tags/{tag_id}')

        assert response.status_code == 200
        assert response.get_json()['detached'] == 2
        assert '2 件' in response.get_json()['message']
        assert Post.query.count() == 2


class TestMiscApi:
    def test_markdown_preview(self, admin_client):
        response = admin_client.post('/dashboard/api/markdown-preview', json={'markdown': '# Title\n\n**bold**'})
        assert response.status_code == 200
        html = response.get_json()['html']
        assert '<h1>Title</h1>' in html
        assert '<strong>bold</strong>' in html

    def test_markdown_preview_requires_content(self, admin_client):
        response = admin_client.post('/dashboard/api/markdown-preview', json={})
        assert response.status_code == 400

    def test_download_all_data(self, admin_client, alice, make_post, make_comment):
        post = make_post('Exported', 'alice', tags=['x'])
        make_comment(post, 'alice')

        response = admin_client.get('/dashboard/api/download-all-data')

        assert response.status_code == 200
        assert response.mimetype == 'application/json'
        assert 'attachment; filename="blog_data.json"' in response.headers['Content-Disposition']
        data = json.loads(response.data)
        assert set(data) == {'posts', 'categories', 'tags', 'comments', 'post_categories', 'post_tags'}
        assert data['posts'][0]['slug'] == 'exported'
        assert len(data['comments']) == 1


class TestDashboardPages:
    @pytest.mark.parametrize('path', [
        '/dashboard/', '/dashboard/posts', '/dashboard/posts/create', '/dashboard/comments',
        '/dashboard/categories', '/dashboard/tags',
    ])
    def test_pages_render_for_admin(self, admin_client, alice, make_post, make_comment, path):
        make_comment(make_post('Listed Post', 'alice', tags=['listed']), 'alice', approved=False)
        response = admin_client.get(path)
        assert response.status_code == 200

    def test_edit_page_is_prefilled(self, admin_client, alice, make_post):
        post = make_post('Editable', 'alice', tags=['one', 'two'])
        response = admin_client.get(f'/dashboard/posts/edit/{post.id}')
        assert response.status_code == 200
        assert b'value="Editable"' in response.data
        assert b'one, two' in response.data

    def test_edit_unknown_post(self, admin_client):
        assert admin_client.get('/dashboard/posts/edit/999').status_code == 404

    def test_index_shows_recent_activity(self, admin_client, alice, make_post, make_comment):
        make_comment(make_post('Recent Post', 'alice'), 'alice', content='Recent remark')
        response = admin_client.get('/dashboard/')
        assert b'Recent Post' in response.data
        assert b'Recent remark' in response.data

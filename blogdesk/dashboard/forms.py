# blogdesk/dashboard/forms.py

from flask_wtf import FlaskForm
from wtforms import SelectField, SelectMultipleField, StringField, SubmitField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from blogdesk.models import Category


# --- 記事フォーム ---
class PostForm(FlaskForm):
    """
    記事作成・編集フォーム。
    保存は JSON API (/dashboard/api/posts) 経由で行うため、ここでは入力欄の描画と初期値の設定を担当します。
    """
    title = StringField('タイトル', validators=[DataRequired(), Length(min=1, max=255)])
    excerpt = TextAreaField('抜粋', validators=[Optional()])
    content = TextAreaField('本文 (Markdown)', validators=[DataRequired()])
    categories = SelectMultipleField('カテゴリ', coerce=int)
    tags = StringField('タグ (カンマ区切り)', validators=[Optional()])
    status = SelectField(
        'ステータス',
        choices=[('draft', '下書き'), ('published', '公開'), ('private', '非公開')],
        default='draft',
    )
    preview_image = StringField('プレビュー画像URL', validators=[Optional(), Length(max=2048)])
    submit = SubmitField('保存')

    def __init__(self, *args, **kwargs):
        super(PostForm, self).__init__(*args, **kwargs)
        # カテゴリの選択肢を設定
        self.categories.choices = [(c.id, c.name) for c in Category.query.order_by(Category.name.asc()).all()]


# --- カテゴリ・タグ関連フォーム ---
class CategoryForm(FlaskForm):
    name = StringField('カテゴリ名', validators=[DataRequired(), Length(max=100)])
    description = TextAreaField('説明', validators=[Optional()])
    submit = SubmitField('保存')


class TagForm(FlaskForm):
    name = StringField('タグ名', validators=[DataRequired(), Length(max=50)])
    submit = SubmitField('保存')

# blogdesk/forms.py

from flask_wtf import FlaskForm
from wtforms import HiddenField, SubmitField, TextAreaField
from wtforms.validators import DataRequired, Length

from blogdesk.comments import MAX_COMMENT_LENGTH


class CommentForm(FlaskForm):
    """コメント投稿フォーム。返信の場合は parent_id に返信先のIDが入ります。"""
    content = TextAreaField('コメント', validators=[DataRequired(), Length(max=MAX_COMMENT_LENGTH)])
    parent_id = HiddenField()
    submit = SubmitField('コメントを投稿')

"""Account forms."""
from wtforms import StringField
from wtforms.validators import DataRequired, Regexp, Length, Optional

from app.forms.base import ApiForm, EMAIL_PATTERN


class LoginForm(ApiForm):
    email = StringField(validators=[DataRequired(message='Email requerido')])
    password = StringField(validators=[DataRequired(message='Contraseña requerida')])


class RegisterForm(ApiForm):
    email = StringField(validators=[
        DataRequired(message='Email requerido'),
        Regexp(EMAIL_PATTERN, message='Email inválido'),
        Length(max=255),
    ])
    password = StringField(validators=[
        DataRequired(message='Contraseña requerida'),
        Length(min=6, message='La contraseña debe tener al menos 6 caracteres'),
    ])
    nombre = StringField(validators=[Optional(), Length(max=200)])
    telefono = StringField(validators=[Optional(), Length(max=50)])

"""Saved shipping address bodies."""
from wtforms import BooleanField, DecimalField, StringField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from app.forms.base import ApiForm


class AddressForm(ApiForm):
    """POST/PUT /direcciones"""

    nombreCompleto = StringField(validators=[Optional(), Length(max=200)])
    telefono = StringField(validators=[DataRequired(message='teléfono y calle son requeridos'), Length(max=50)])
    calle = StringField(validators=[DataRequired(message='teléfono y calle son requeridos'), Length(max=200)])
    numero = StringField(validators=[Optional(), Length(max=20)])
    transversal = StringField(validators=[Optional(), Length(max=200)])
    referencia = StringField(validators=[Optional(), Length(max=255)])
    codigoPostal = StringField(validators=[Optional(), Length(max=20)])
    departamento = StringField(validators=[Optional(), Length(max=100)])
    ciudad = StringField(validators=[Optional(), Length(max=100)])
    barrio = StringField(validators=[Optional(), Length(max=100)])
    lat = DecimalField(validators=[Optional(), NumberRange(min=-90, max=90, message='Latitud inválida')])
    lng = DecimalField(validators=[Optional(), NumberRange(min=-180, max=180, message='Longitud inválida')])
    esPrincipal = BooleanField(default=False)

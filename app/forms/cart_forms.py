"""Storefront forms: cart and checkout bodies."""
from wtforms import IntegerField, StringField, SelectField, DecimalField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional, Regexp, Length

from app.forms.base import ApiForm, EMAIL_PATTERN
from app.models import PaymentMethod
from app.services.order_service import CONTACT_PAYMENT


class CartAddForm(ApiForm):
    """POST /carrito/agregar"""

    varianteId = IntegerField(validators=[DataRequired(message='varianteId es requerido')])
    cantidad = IntegerField(
        default=1,
        validators=[Optional(), NumberRange(min=1, message='Cantidad debe ser mayor a 0')]
    )


class CartQuantityForm(ApiForm):
    """PUT /carrito/item/<id>"""

    cantidad = IntegerField(validators=[
        InputRequired(message='Cantidad debe ser mayor a 0'),
        NumberRange(min=1, message='Cantidad debe ser mayor a 0'),
    ])


class CheckoutForm(ApiForm):
    """POST /pedidos - 'cliente' fields arrive nested and are flattened."""

    nombre = StringField(validators=[DataRequired(message='El nombre del cliente es requerido'), Length(max=200)])
    email = StringField(validators=[
        DataRequired(message='El email del cliente es requerido'),
        Regexp(EMAIL_PATTERN, message='Email inválido'),
        Length(max=255),
    ])
    telefono = StringField(validators=[Optional(), Length(max=50)])
    direccion = StringField(validators=[Optional(), Length(max=500)])
    direccionId = IntegerField(validators=[Optional()])
    notas = StringField(validators=[Optional()])
    metodoPago = SelectField(
        choices=[(m.value, m.value) for m in PaymentMethod] + [(CONTACT_PAYMENT, CONTACT_PAYMENT)],
        validators=[DataRequired(message='Método de pago requerido')],
    )
    costoEnvio = DecimalField(
        places=2,
        default=0,
        validators=[Optional(), NumberRange(min=0, message='El costo de envío no puede ser negativo')]
    )
    notasCliente = StringField(validators=[Optional()])

"""
Admin forms for discounts, catalog and order management.
"""
from wtforms import BooleanField, DateField, DecimalField, IntegerField, SelectField, StringField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional, ValidationError

from app.forms.base import ApiForm
from app.models import DiscountType, OrderStatus


class DiscountForm(ApiForm):
    """Discount create/update. Cross-field rules are checked by discount_service."""

    tipo = SelectField(
        choices=[(t.value, t.value) for t in DiscountType],
        validators=[DataRequired(message='El tipo de descuento es requerido')]
    )
    valor = DecimalField(
        places=2,
        validators=[
            InputRequired(message='El valor es requerido'),
            NumberRange(max=100, message='El descuento no puede superar el 100%%')
        ]
    )
    descripcion = StringField(validators=[Optional(), Length(max=255)])
    activo = BooleanField(default=True)
    fechaDesde = DateField(format='%Y-%m-%d', validators=[DataRequired(message='fechaDesde es requerida')])
    fechaHasta = DateField(format='%Y-%m-%d', validators=[DataRequired(message='fechaHasta es requerida')])
    varianteId = IntegerField(validators=[Optional()])
    cantDesde = DecimalField(places=2, validators=[Optional(), NumberRange(min=0, message='cantDesde no puede ser negativo')])
    cantHasta = DecimalField(places=2, validators=[Optional(), NumberRange(min=0, message='cantHasta no puede ser negativo')])

    def validate_valor(self, field):
        if field.data is not None and field.data <= 0:
            raise ValidationError('El descuento debe ser mayor a 0')


class ProductForm(ApiForm):
    nombre = StringField(validators=[DataRequired(message='El nombre es requerido'), Length(max=200)])
    slug = StringField(validators=[Optional(), Length(max=220)])
    descripcion = StringField(validators=[Optional()])
    precio = DecimalField(places=2, validators=[Optional(), NumberRange(min=0, message='El precio no puede ser negativo')])
    stock = IntegerField(validators=[Optional(), NumberRange(min=0, message='El stock no puede ser negativo')])
    imagenUrl = StringField(validators=[Optional(), Length(max=500)])
    activo = BooleanField(default=True)


class VariantForm(ApiForm):
    nombre = StringField(validators=[DataRequired(message='El nombre es requerido'), Length(max=200)])
    slug = StringField(validators=[Optional(), Length(max=220)])
    sku = StringField(validators=[Optional(), Length(max=100)])
    precio = DecimalField(places=2, validators=[Optional(), NumberRange(min=0, message='El precio no puede ser negativo')])
    stock = IntegerField(validators=[Optional(), NumberRange(min=0, message='El stock no puede ser negativo')])
    imagenUrl = StringField(validators=[Optional(), Length(max=500)])
    bloqueoDescuento = BooleanField(default=False)
    activo = BooleanField(default=True)


class OrderStatusForm(ApiForm):
    estado = SelectField(
        choices=[(s.value, s.value) for s in OrderStatus],
        validators=[DataRequired(message='El estado es requerido')]
    )
    codigoSeguimiento = StringField(validators=[Optional(), Length(max=100)])
    notasInternas = StringField(validators=[Optional()])

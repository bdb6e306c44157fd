"""
Base form and helpers to validate JSON request bodies with WTForms.

JSON bodies are flattened into a MultiDict (nested objects merged into the
top level, numbers as strings so DecimalField never sees a float) and fed
to the form as formdata.
"""
from typing import Any, Dict, Optional, Type

from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import BooleanField

from app.exceptions import ValidationError

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


class ApiForm(FlaskForm):
    """FlaskForm for JSON bodies. CSRF is enforced by CSRFProtect headers, not a form field."""

    class Meta:
        csrf = False


def _flatten(payload: Dict[str, Any], into: MultiDict) -> MultiDict:
    for key, value in payload.items():
        if value is None or isinstance(value, (list, tuple)):
            continue
        if isinstance(value, dict):
            _flatten(value, into)
        elif isinstance(value, bool):
            into[key] = 'true' if value else 'false'
        elif isinstance(value, (int, float)):
            into[key] = str(value)
        else:
            into[key] = value
    return into


def json_formdata(payload: Optional[Dict[str, Any]]) -> MultiDict:
    return _flatten(payload or {}, MultiDict())


def validate_json(form_cls: Type[ApiForm], payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Validate the request JSON with form_cls.

    Returns:
        Field data. Boolean fields absent from the body are left out so
        callers can apply their own default.

    Raises:
        ValidationError: with the first error as message and all field errors
    """
    if payload is None:
        payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        raise ValidationError('El cuerpo de la petición debe ser un objeto JSON')

    formdata = json_formdata(payload)
    form = form_cls(formdata=formdata)
    if not form.validate():
        first_field, messages = next(iter(form.errors.items()))
        raise ValidationError(messages[0] if messages else f'{first_field} inválido', errors=form.errors)

    data = {}
    for name, field in form._fields.items():
        if isinstance(field, BooleanField) and name not in formdata:
            continue
        data[name] = field.data
    return data

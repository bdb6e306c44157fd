"""
Utilidades de formateo de montos.
Montos en guaraníes: sin decimales y con punto como separador de miles.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

CENT = Decimal('0.01')

Number = Union[int, float, Decimal, str, None]


def to_decimal(value: Number) -> Decimal:
    """
    Convierte un valor numérico a Decimal sin pasar por float.

    Raises:
        ValueError: si el valor no es numérico.
    """
    if value is None or value == "":
        raise ValueError('Valor numérico requerido')
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f'Valor numérico inválido: {value!r}')


def round_money(value: Decimal) -> Decimal:
    """Redondea un monto a centavos (mitad hacia arriba)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def group_thousands(integer_part: str) -> str:
    """Agrega separador de miles (punto) a una cadena de dígitos."""
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return '.'.join(groups)[::-1]


def format_gs(value: Number) -> str:
    """
    Formatea un monto en guaraníes: entero redondeado con puntos de miles.

    Examples:
        format_gs(6550) -> "6.550"
        format_gs(Decimal('2999.5')) -> "3.000"
        format_gs(Decimal('-1250')) -> "-1.250"
        format_gs('abc') -> "abc"
    """
    try:
        num = to_decimal(value)
    except ValueError:
        return str(value)

    rounded = num.quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{group_thousands(str(abs(int(rounded))))}"


def money_json(value: Decimal) -> Union[int, float]:
    """
    Representación JSON de un monto.
    Enteros se emiten sin decimales para que 20000 no aparezca como 20000.0.
    """
    if value == value.to_integral_value():
        return int(value)
    return float(value)

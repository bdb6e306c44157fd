"""
Integration tests for checkout and order lookup.
"""
import re
from datetime import date, timedelta

from app.models import Cart, DiscountType, Order


CUSTOMER = {
    'nombre': 'Ana Pérez',
    'email': 'ana@test.com',
    'telefono': '0981 123456',
    'direccion': 'Av. Mcal. López 123',
    'notas': 'Tocar timbre',
}


def add(client, headers, variant, quantity=1):
    response = client.post('/api/carrito/agregar', json={'varianteId': variant.id, 'cantidad': quantity},
                           headers=headers)
    assert response.status_code == 200, response.get_json()
    return response


def checkout(client, headers, payment='efectivo', **extra):
    body = {'cliente': CUSTOMER, 'metodoPago': payment}
    body.update(extra)
    return client.post('/api/pedidos', json=body, headers=headers)


class TestCheckout:

    def test_creates_order_and_decrements_stock(self, client, anon_headers, make_variant, session):
        variant = make_variant(price='10000', stock=5)
        add(client, anon_headers, variant, 2)

        response = checkout(client, anon_headers, costoEnvio=5000)

        assert response.status_code == 201
        order = response.get_json()['pedido']
        assert re.match(r'^PED-\d{8}-\d{4}$', order['numeroPedido'])
        assert order['estado'] == 'confirmado'
        assert order['metodoPago'] == 'efectivo'
        assert order['estadoPago'] == 'pendiente'
        assert order['subtotal'] == 20000
        assert order['costoEnvio'] == 5000
        assert order['total'] == 25000
        assert order['cliente']['nombre'] == 'Ana Pérez'
        assert order['fechaEstimadaEntrega'] == (date.today() + timedelta(days=3)).isoformat()
        assert order['items'][0]['cantidad'] == 2
        assert order['items'][0]['precioUnitario'] == 10000

        assert variant.stock == 3

    def test_empties_the_cart(self, client, anon_headers, make_variant):
        add(client, anon_headers, make_variant())
        checkout(client, anon_headers)

        assert client.get('/api/carrito', headers=anon_headers).get_json()['carrito']['items'] == []

    def test_snapshots_line_discounts(self, client, anon_headers, make_variant, make_discount):
        variant = make_variant(price='20000')
        make_discount(DiscountType.PRODUCT, 15, variant=variant)
        add(client, anon_headers, variant)

        order = checkout(client, anon_headers).get_json()['pedido']

        item = order['items'][0]
        assert item['tipoDescuento'] == 'PRODUCTO'
        assert item['importeDescuento'] == 3000
        assert item['total'] == 17000
        assert order['importeDescuento'] == 3000
        assert order['total'] == 17000

    def test_contact_payment_leaves_order_pending(self, client, anon_headers, make_variant):
        add(client, anon_headers, make_variant())

        order = checkout(client, anon_headers, payment='contacto').get_json()['pedido']

        assert order['estado'] == 'pendiente'
        assert order['metodoPago'] == 'otros'

    def test_empty_cart_rejected(self, client, anon_headers):
        response = checkout(client, anon_headers)

        assert response.status_code == 400
        assert response.get_json()['message'] == 'El carrito está vacío'

    def test_insufficient_stock_rolls_back(self, client, anon_headers, make_variant, session):
        variant = make_variant(stock=5)
        add(client, anon_headers, variant, 2)
        variant.stock = 1
        session.commit()

        response = checkout(client, anon_headers)

        assert response.status_code == 409
        assert variant.stock == 1
        assert session.query(Order).count() == 0
        cart = session.query(Cart).filter_by(session_id=anon_headers['x-session-id']).one()
        assert len(cart.items) == 1

    def test_validates_customer(self, client, anon_headers, make_variant):
        add(client, anon_headers, make_variant())

        response = client.post('/api/pedidos', json={'cliente': {'email': 'x@test.com'}, 'metodoPago': 'efectivo'},
                               headers=anon_headers)

        assert response.status_code == 400
        assert 'nombre' in response.get_json()['errors']

    def test_rejects_unknown_payment_method(self, client, anon_headers, make_variant):
        add(client, anon_headers, make_variant())

        assert checkout(client, anon_headers, payment='bitcoin').status_code == 400

    def test_rejects_negative_shipping(self, client, anon_headers, make_variant):
        add(client, anon_headers, make_variant())

        assert checkout(client, anon_headers, costoEnvio=-1).status_code == 400


class TestOrderLookup:

    def test_guest_can_read_own_order(self, client, anon_headers, make_variant):
        add(client, anon_headers, make_variant())
        order_id = checkout(client, anon_headers).get_json()['pedido']['id']

        response = client.get(f'/api/pedidos/{order_id}', headers=anon_headers)

        assert response.status_code == 200
        assert response.get_json()['pedido']['id'] == order_id

    def test_other_session_forbidden(self, client, anon_headers, make_variant):
        add(client, anon_headers, make_variant())
        order_id = checkout(client, anon_headers).get_json()['pedido']['id']

        response = client.get(f'/api/pedidos/{order_id}', headers={'x-session-id': 'session_9_' + 'd' * 32})

        assert response.status_code == 403

    def test_missing_order(self, client, anon_headers):
        assert client.get('/api/pedidos/424242', headers=anon_headers).status_code == 404

    def test_list_requires_login(self, client):
        assert client.get('/api/pedidos').status_code == 401

    def test_user_lists_own_orders(self, client, make_user, login, make_variant):
        user = make_user()
        login(user)
        add(client, {}, make_variant())
        checkout(client, {})

        data = client.get('/api/pedidos').get_json()

        assert data['pagination']['total'] == 1
        assert data['pedidos'][0]['usuarioId'] == user.id
        assert 'items' not in data['pedidos'][0]

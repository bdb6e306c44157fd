"""
Integration tests for the cart endpoints.
"""
import re

from app.models import Cart, DiscountType


def add(client, headers, variant, quantity=1):
    return client.post('/api/carrito/agregar', json={'varianteId': variant.id, 'cantidad': quantity}, headers=headers)


class TestCartIdentity:
    """Anonymous carts are keyed by the x-session-id header."""

    def test_generates_session_header_when_missing(self, client):
        response = client.get('/api/carrito')

        assert response.status_code == 200
        assert re.match(r'^session_\d+_[0-9a-f]{32}$', response.headers['x-session-id'])

    def test_echoes_existing_session_header(self, client, anon_headers):
        response = client.get('/api/carrito', headers=anon_headers)

        assert response.headers['x-session-id'] == anon_headers['x-session-id']

    def test_empty_cart(self, client, anon_headers):
        data = client.get('/api/carrito', headers=anon_headers).get_json()

        assert data['carrito']['items'] == []
        assert data['resumen'] == {'subTotal': 0, 'importeDescuento': 0, 'total': 0, 'cantidadItems': 0}

    def test_sessions_do_not_share_carts(self, client, anon_headers, make_variant):
        add(client, anon_headers, make_variant())

        other = client.get('/api/carrito', headers={'x-session-id': 'session_1_' + 'b' * 32}).get_json()
        assert other['carrito']['items'] == []


class TestCartOperations:

    def test_add_item(self, client, anon_headers, make_variant):
        variant = make_variant(price='10000', stock=5)

        response = add(client, anon_headers, variant, 2)

        assert response.status_code == 200
        data = response.get_json()
        assert data['mensaje'] == 'Producto agregado al carrito'
        item = data['carrito']['items'][0]
        assert item['varianteId'] == variant.id
        assert item['cantidad'] == 2
        assert item['subtotal'] == 20000
        assert item['tipoDescuento'] == ''
        assert data['resumen']['total'] == 20000

    def test_add_same_variant_increments_quantity(self, client, anon_headers, make_variant):
        variant = make_variant(stock=5)
        add(client, anon_headers, variant, 1)

        data = add(client, anon_headers, variant, 2).get_json()

        assert len(data['carrito']['items']) == 1
        assert data['carrito']['items'][0]['cantidad'] == 3

    def test_add_defaults_quantity_to_one(self, client, anon_headers, make_variant):
        variant = make_variant()
        response = client.post('/api/carrito/agregar', json={'varianteId': variant.id}, headers=anon_headers)

        assert response.get_json()['carrito']['items'][0]['cantidad'] == 1

    def test_add_requires_variant(self, client, anon_headers):
        response = client.post('/api/carrito/agregar', json={'cantidad': 1}, headers=anon_headers)

        assert response.status_code == 400
        data = response.get_json()
        assert data['status'] == 'error'
        assert 'varianteId' in data['errors']

    def test_add_unknown_variant(self, client, anon_headers):
        response = client.post('/api/carrito/agregar', json={'varianteId': 999999}, headers=anon_headers)

        assert response.status_code == 404
        assert response.get_json()['message'] == 'Variante no encontrada'

    def test_add_inactive_variant(self, client, anon_headers, make_variant):
        response = add(client, anon_headers, make_variant(active=False))

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Producto no disponible'

    def test_add_over_stock(self, client, anon_headers, make_variant):
        response = add(client, anon_headers, make_variant(stock=2), 3)

        assert response.status_code == 409
        assert response.get_json()['disponible'] == 2

    def test_update_quantity(self, client, anon_headers, make_variant):
        item_id = add(client, anon_headers, make_variant(price='1500')).get_json()['carrito']['items'][0]['id']

        response = client.put(f'/api/carrito/item/{item_id}', json={'cantidad': 4}, headers=anon_headers)

        assert response.status_code == 200
        data = response.get_json()
        assert data['carrito']['items'][0]['cantidad'] == 4
        assert data['resumen']['subTotal'] == 6000

    def test_update_quantity_must_be_positive(self, client, anon_headers, make_variant):
        item_id = add(client, anon_headers, make_variant()).get_json()['carrito']['items'][0]['id']

        response = client.put(f'/api/carrito/item/{item_id}', json={'cantidad': 0}, headers=anon_headers)

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Cantidad debe ser mayor a 0'

    def test_cannot_touch_items_of_another_cart(self, client, anon_headers, make_variant):
        item_id = add(client, anon_headers, make_variant()).get_json()['carrito']['items'][0]['id']
        other = {'x-session-id': 'session_2_' + 'c' * 32}

        assert client.put(f'/api/carrito/item/{item_id}', json={'cantidad': 2}, headers=other).status_code == 404
        assert client.delete(f'/api/carrito/item/{item_id}', headers=other).status_code == 404

    def test_remove_item(self, client, anon_headers, make_variant):
        item_id = add(client, anon_headers, make_variant()).get_json()['carrito']['items'][0]['id']

        response = client.delete(f'/api/carrito/item/{item_id}', headers=anon_headers)

        assert response.status_code == 200
        assert response.get_json()['carrito']['items'] == []

    def test_clear_cart(self, client, anon_headers, make_variant, session):
        add(client, anon_headers, make_variant())
        add(client, anon_headers, make_variant())

        response = client.post('/api/carrito/vaciar', headers=anon_headers)

        assert response.status_code == 200
        assert response.get_json()['mensaje'] == 'Carrito vaciado'
        cart = session.query(Cart).filter_by(session_id=anon_headers['x-session-id']).one()
        assert cart.items == []

    def test_recalculate_matches_get(self, client, anon_headers, make_variant):
        add(client, anon_headers, make_variant(), 2)

        recalculated = client.post('/api/carrito/recalcular', headers=anon_headers).get_json()
        assert recalculated == client.get('/api/carrito', headers=anon_headers).get_json()


class TestCartPricing:

    def test_inactive_variant_is_left_out(self, client, anon_headers, make_variant, session):
        kept = make_variant(price='1000')
        dropped = make_variant(price='2000')
        add(client, anon_headers, kept)
        add(client, anon_headers, dropped)

        dropped.active = False
        session.commit()

        data = client.get('/api/carrito', headers=anon_headers).get_json()
        assert [i['varianteId'] for i in data['carrito']['items']] == [kept.id]
        assert data['resumen']['subTotal'] == 1000

    def test_amount_tier(self, client, anon_headers, make_variant, make_discount):
        make_discount(DiscountType.AMOUNT, 10, amount_from=0, amount_to=100000)
        add(client, anon_headers, make_variant(price='10000'), 2)

        data = client.get('/api/carrito', headers=anon_headers).get_json()

        item = data['carrito']['items'][0]
        assert item['tipoDescuento'] == 'IMPORTE'
        assert item['descuento'] == 10
        assert item['descripcion'] == 'Por importe (10%) - 2.000 Gs'
        assert data['resumen'] == {'subTotal': 20000, 'importeDescuento': 2000, 'total': 18000, 'cantidadItems': 1}

    def test_blocked_variant_gets_no_tier(self, client, anon_headers, make_variant, make_discount):
        make_discount(DiscountType.AMOUNT, 10, amount_from=0, amount_to=100000)
        add(client, anon_headers, make_variant(price='10000', discount_blocked=True), 2)

        data = client.get('/api/carrito', headers=anon_headers).get_json()

        assert data['carrito']['items'][0]['tipoDescuento'] == ''
        assert data['resumen']['total'] == 20000

    def test_product_discount_beats_tier(self, client, anon_headers, make_variant, make_discount):
        variant = make_variant(price='20000')
        make_discount(DiscountType.PRODUCT, 15, variant=variant)
        make_discount(DiscountType.AMOUNT, 10, amount_from=0, amount_to=100000)
        add(client, anon_headers, variant)

        data = client.get('/api/carrito', headers=anon_headers).get_json()

        item = data['carrito']['items'][0]
        assert item['tipoDescuento'] == 'PRODUCTO'
        assert item['importeDescuento'] == 3000
        assert item['descripcion'] == 'Por producto (15%) - 3.000 Gs'
        assert data['resumen']['total'] == 17000

    def test_tier_uses_eligible_subtotal_only(self, client, anon_headers, make_variant, make_discount):
        discounted = make_variant(price='90000')
        plain = make_variant(price='20000')
        make_discount(DiscountType.PRODUCT, 10, variant=discounted)
        # Whole cart is 110000, eligible part only 20000
        make_discount(DiscountType.AMOUNT, 5, amount_from=0, amount_to=50000)
        add(client, anon_headers, discounted)
        add(client, anon_headers, plain)

        items = client.get('/api/carrito', headers=anon_headers).get_json()['carrito']['items']

        kinds = {i['varianteId']: i['tipoDescuento'] for i in items}
        assert kinds == {discounted.id: 'PRODUCTO', plain.id: 'IMPORTE'}

"""
Integration tests for the public catalog.
"""
from app.models import DiscountType


class TestCatalog:

    def test_lists_active_products_with_discounted_price(self, client, make_variant, make_discount):
        variant = make_variant(price='20000', name='Campera')
        make_discount(DiscountType.PRODUCT, 25, variant=variant)
        make_variant(price='5000', name='Oculta', active=False)

        data = client.get('/api/productos').get_json()

        by_name = {p['nombre']: p for p in data['productos']}
        campera = by_name['Campera']['variantes'][0]
        assert campera['precio'] == 20000
        assert campera['descuento'] == 25
        assert campera['precioFinal'] == 15000
        assert by_name['Oculta']['variantes'] == []
        assert data['pagination']['total'] == 2

    def test_search(self, client, make_variant):
        make_variant(name='Mochila urbana')
        make_variant(name='Termo')

        data = client.get('/api/productos?q=mochi').get_json()

        assert [p['nombre'] for p in data['productos']] == ['Mochila urbana']

    def test_detail_by_slug(self, client, make_variant):
        variant = make_variant(name='Gorra')

        response = client.get(f'/api/productos/{variant.product.slug}')

        assert response.status_code == 200
        assert response.get_json()['producto']['variantes'][0]['id'] == variant.id

    def test_unknown_slug(self, client):
        assert client.get('/api/productos/no-existe').status_code == 404


class TestMetrics:

    def test_metrics_endpoint(self, client, anon_headers):
        client.get('/api/carrito', headers=anon_headers)

        response = client.get('/metrics')

        assert response.status_code == 200
        assert b'cart_pricing_total' in response.data

"""
Integration tests for saved shipping addresses.
"""
from app.models import ShippingAddress, UserRole


def address_body(**overrides):
    body = {
        'telefono': '0981 123456',
        'calle': 'Av. Mcal. López',
        'numero': '1234',
        'transversal': 'Kubitschek',
        'ciudad': 'Asunción',
        'barrio': 'Villa Morra',
        'referencia': 'Portón negro',
    }
    body.update(overrides)
    return body


def create(client, **overrides):
    response = client.post('/api/direcciones', json=address_body(**overrides))
    assert response.status_code == 201, response.get_json()
    return response.get_json()['direccion']


class TestAddressAccess:

    def test_requires_login(self, client):
        assert client.get('/api/direcciones').status_code == 401
        assert client.post('/api/direcciones', json=address_body()).status_code == 401

    def test_other_users_addresses_are_forbidden(self, client, make_user, login, session):
        owner = make_user()
        address = ShippingAddress(user_id=owner.id, phone='1', street='Calle', is_primary=False)
        session.add(address)
        session.commit()
        login(make_user())

        assert client.get(f'/api/direcciones/{address.id}').status_code == 403
        assert client.get(f'/api/direcciones/usuario/{owner.id}').status_code == 403
        assert client.delete(f'/api/direcciones/{address.id}').status_code == 403

    def test_admin_can_read_but_not_pick_primary(self, client, make_user, login, session):
        owner = make_user()
        address = ShippingAddress(user_id=owner.id, phone='1', street='Calle', is_primary=False)
        session.add(address)
        session.commit()
        login(make_user(role=UserRole.ADMIN))

        assert client.get(f'/api/direcciones/usuario/{owner.id}').get_json()['total'] == 1
        assert client.put(f'/api/direcciones/{address.id}/principal').status_code == 403

    def test_unknown_address(self, client, make_user, login):
        login(make_user())

        assert client.get('/api/direcciones/999').status_code == 404


class TestAddressCrud:

    def test_create_and_list(self, client, make_user, login):
        user = make_user()
        login(user)

        created = create(client)

        assert created['usuarioId'] == user.id
        assert created['calle'] == 'Av. Mcal. López'
        assert created['codigoPostal'] == ''
        assert created['esPrincipal'] is False
        listed = client.get(f'/api/direcciones/usuario/{user.id}').get_json()
        assert listed['total'] == 1
        assert client.get('/api/direcciones').get_json()['direcciones'][0]['id'] == created['id']

    def test_phone_and_street_are_required(self, client, make_user, login):
        login(make_user())

        response = client.post('/api/direcciones', json=address_body(calle=''))

        assert response.status_code == 400
        assert 'calle' in response.get_json()['errors']

    def test_update(self, client, make_user, login):
        login(make_user())
        created = create(client)

        response = client.put(f"/api/direcciones/{created['id']}", json=address_body(numero='99', ciudad='Luque'))

        assert response.status_code == 200
        assert response.get_json()['direccion']['numero'] == '99'
        assert response.get_json()['direccion']['ciudad'] == 'Luque'

    def test_delete(self, client, make_user, login):
        login(make_user())
        created = create(client)

        assert client.delete(f"/api/direcciones/{created['id']}").status_code == 200
        assert client.get(f"/api/direcciones/{created['id']}").status_code == 404


class TestPrimaryAddress:

    def test_new_primary_unmarks_previous(self, client, make_user, login):
        login(make_user())
        first = create(client, esPrincipal=True)
        second = create(client, calle='Otra calle', esPrincipal=True)

        listed = client.get('/api/direcciones').get_json()['direcciones']

        assert [(a['id'], a['esPrincipal']) for a in listed] == [(second['id'], True), (first['id'], False)]

    def test_mark_as_primary(self, client, make_user, login):
        login(make_user())
        first = create(client, esPrincipal=True)
        second = create(client, calle='Otra calle')

        response = client.put(f"/api/direcciones/{second['id']}/principal")

        assert response.status_code == 200
        assert response.get_json()['direccion']['esPrincipal'] is True
        assert client.get(f"/api/direcciones/{first['id']}").get_json()['direccion']['esPrincipal'] is False

    def test_update_to_primary_keeps_a_single_one(self, client, make_user, login):
        login(make_user())
        create(client, esPrincipal=True)
        second = create(client, calle='Otra calle')

        client.put(f"/api/direcciones/{second['id']}", json=address_body(calle='Otra calle', esPrincipal=True))

        primaries = [a for a in client.get('/api/direcciones').get_json()['direcciones'] if a['esPrincipal']]
        assert [a['id'] for a in primaries] == [second['id']]

    def test_update_without_flag_keeps_primary(self, client, make_user, login):
        login(make_user())
        created = create(client, esPrincipal=True)

        response = client.put(f"/api/direcciones/{created['id']}", json=address_body(numero='1'))

        assert response.get_json()['direccion']['esPrincipal'] is True


class TestCheckoutWithSavedAddress:

    def _fill_cart(self, client, variant, headers=None):
        response = client.post('/api/carrito/agregar', json={'varianteId': variant.id}, headers=headers or {})
        assert response.status_code == 200

    def test_order_uses_saved_address(self, client, make_user, login, make_variant):
        login(make_user())
        address = create(client)
        self._fill_cart(client, make_variant())

        response = client.post('/api/pedidos', json={
            'cliente': {'nombre': 'Ana', 'email': 'ana@test.com'},
            'metodoPago': 'efectivo',
            'direccionId': address['id'],
        })

        assert response.status_code == 201
        customer = response.get_json()['pedido']['cliente']
        assert customer['direccionId'] == address['id']
        assert customer['direccion'] == 'Av. Mcal. López 1234 c/ Kubitschek, Villa Morra, Asunción (Portón negro)'
        assert customer['telefono'] == '0981 123456'

    def test_someone_elses_address_is_rejected(self, client, make_user, login, make_variant, session):
        other = make_user()
        foreign = ShippingAddress(user_id=other.id, phone='1', street='Ajena', is_primary=False)
        session.add(foreign)
        session.commit()
        variant = make_variant(stock=5)
        login(make_user())
        self._fill_cart(client, variant)

        response = client.post('/api/pedidos', json={
            'cliente': {'nombre': 'Ana', 'email': 'ana@test.com'},
            'metodoPago': 'efectivo',
            'direccionId': foreign.id,
        })

        assert response.status_code == 404
        assert variant.stock == 5

    def test_anonymous_cannot_use_saved_address(self, client, anon_headers, make_variant):
        self._fill_cart(client, make_variant(), anon_headers)

        response = client.post('/api/pedidos', json={
            'cliente': {'nombre': 'Ana', 'email': 'ana@test.com'},
            'metodoPago': 'efectivo',
            'direccionId': 1,
        }, headers=anon_headers)

        assert response.status_code == 404

"""
Unit Tests for Admin and Superadmin API Endpoints
"""
from httpx import AsyncClient
from faker import Faker

from conftest import STRONG_PASSWORD

fake = Faker()


def _admin_payload(**overrides):
    payload = {
        'adminName': fake.unique.user_name(),
        'email': fake.unique.email(),
        'password': 'Abc123!',
    }
    payload.update(overrides)
    return payload


class TestAdminRegistration:
    """Only superadmins create staff accounts"""

    async def test_superadmin_registers_admin(self, client: AsyncClient, superadmin_headers):
        payload = _admin_payload()

        response = await client.post('/api/admin/register', json=payload, headers=superadmin_headers)

        assert response.status_code == 201
        body = response.json()
        assert body['message'] == 'Admin created successfully'
        assert body['admin']['adminName'] == payload['adminName']
        assert body['admin']['role'] == 'admin'

    async def test_admin_cannot_register_admin(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/admin/register', json=_admin_payload(), headers=admin_headers)

        assert response.status_code == 403
        assert response.json()['message'] == 'Only Super Admin allowed.'

    async def test_student_cannot_register_superadmin(self, client: AsyncClient, student_headers):
        response = await client.post('/api/superadmin/register', json=_admin_payload(), headers=student_headers)

        assert response.status_code == 403

    async def test_anonymous_refused(self, client: AsyncClient):
        response = await client.post('/api/admin/register', json=_admin_payload())

        assert response.status_code == 401

    async def test_duplicate_admin_name(self, client: AsyncClient, admin, superadmin_headers):
        response = await client.post('/api/admin/register', json=_admin_payload(adminName=admin.name),
                                     headers=superadmin_headers)

        assert response.status_code == 409

    async def test_superadmin_registers_superadmin(self, client: AsyncClient, superadmin_headers):
        response = await client.post('/api/superadmin/register', json=_admin_payload(),
                                     headers=superadmin_headers)

        assert response.status_code == 201
        assert response.json()['superadmin']['role'] == 'super-admin'


class TestStaffLogin:

    async def test_admin_login(self, client: AsyncClient, admin):
        response = await client.post('/api/admin/login', json={'email': admin.email, 'password': STRONG_PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {'_id', 'adminName', 'email', 'role', 'token', 'refreshToken'}
        assert body['adminName'] == admin.name
        assert response.cookies.get('refreshToken') == body['refreshToken']

    async def test_admin_wrong_password(self, client: AsyncClient, admin):
        response = await client.post('/api/admin/login', json={'email': admin.email, 'password': 'Wrong!12'})

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid Credentials!'

    async def test_student_credentials_rejected_by_admin_login(self, client: AsyncClient, verified_student):
        response = await client.post('/api/admin/login',
                                     json={'email': verified_student.email, 'password': STRONG_PASSWORD})

        assert response.status_code == 404
        assert response.json()['message'] == 'Admin not found'

    async def test_superadmin_login_and_refresh(self, client: AsyncClient, superadmin):
        await client.post('/api/superadmin/login', json={'email': superadmin.email, 'password': STRONG_PASSWORD})

        response = await client.get('/api/superadmin/refresh-token')

        assert response.status_code == 200
        assert 'accessToken' in response.json()

    async def test_admin_logout(self, client: AsyncClient, admin):
        await client.post('/api/admin/login', json={'email': admin.email, 'password': STRONG_PASSWORD})

        assert (await client.get('/api/admin/logout')).status_code == 200
        assert admin.refresh_token == ''


class TestStaffManagement:

    async def test_list_admins(self, client: AsyncClient, admin, superadmin_headers):
        response = await client.get('/api/admin/', headers=superadmin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body['message'] == 'All admins'
        assert [a['_id'] for a in body['admins']] == [admin.id]

    async def test_admin_cannot_list_admins(self, client: AsyncClient, admin_headers):
        assert (await client.get('/api/admin/', headers=admin_headers)).status_code == 403

    async def test_update_admin(self, client: AsyncClient, admin, superadmin_headers):
        response = await client.put(f'/api/admin/update/{admin.id}', json={'mobile': '9812345678'},
                                    headers=superadmin_headers)

        assert response.status_code == 200
        assert response.json()['admin']['mobile'] == '9812345678'

    async def test_update_admin_bad_mobile(self, client: AsyncClient, admin, superadmin_headers):
        response = await client.put(f'/api/admin/update/{admin.id}', json={'mobile': '12345'},
                                    headers=superadmin_headers)

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'mobile'

    async def test_superadmin_resets_admin_password(self, client: AsyncClient, admin, superadmin_headers):
        response = await client.put('/api/admin/password', json={'password': 'New!pass1', '_id': admin.id},
                                    headers=superadmin_headers)

        assert response.status_code == 200
        assert admin.check_password('New!pass1')

    async def test_get_and_delete_admin(self, client: AsyncClient, admin, superadmin_headers):
        response = await client.get(f'/api/admin/{admin.id}', headers=superadmin_headers)
        assert response.json()['admin']['email'] == admin.email

        response = await client.delete(f'/api/admin/{admin.id}', headers=superadmin_headers)
        assert response.status_code == 200
        assert response.json()['message'] == 'Admin deleted successfully'

    async def test_delete_missing_admin(self, client: AsyncClient, superadmin_headers):
        response = await client.delete(f'/api/admin/{fake.uuid4()}', headers=superadmin_headers)

        assert response.status_code == 404
        assert response.json()['message'] == 'Admin not found'

    async def test_deleted_admin_token_stops_working(self, client: AsyncClient, admin, admin_headers,
                                                     superadmin_headers):
        await client.delete(f'/api/admin/{admin.id}', headers=superadmin_headers)

        response = await client.get('/api/user/', headers=admin_headers)

        assert response.status_code == 401
        assert response.json()['message'] == 'User not found'

"""
Unit Tests for Student API Endpoints
"""
import pytest
from httpx import AsyncClient
from faker import Faker
from sqlalchemy import select

from abroad_api.core.security import token_service
from abroad_api.models import Student, University

from conftest import STRONG_PASSWORD

fake = Faker()


async def _register(client: AsyncClient, email='a@b.com', password='Abc123!', name='Asha'):
    return await client.post('/api/user/register', json={
        'userName': name,
        'email': email,
        'password': password,
    })


async def _login(client: AsyncClient, email, password):
    return await client.post('/api/user/login', json={'email': email, 'password': password})


class TestStudentSignup:
    """Test the register / verify / login sequence"""

    async def test_full_signup_flow(self, client: AsyncClient, mail_outbox):
        response = await _register(client)

        assert response.status_code == 201
        body = response.json()
        assert body['success'] is True
        assert body['message'] == 'Student created successfully'
        assert body['student']['email'] == 'a@b.com'
        assert body['student']['isVerified'] is False
        assert 'password' not in body['student']

        # Wrong password is reported before verification
        response = await _login(client, 'a@b.com', 'Wrong!12')
        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid Credentials!'
        assert 'token' not in response.json()
        assert 'refreshToken' not in response.cookies

        response = await _login(client, 'a@b.com', 'Abc123!')
        assert response.status_code == 400
        assert response.json()['message'] == 'Verify email!'

        token = mail_outbox.last_token('a@b.com', 'verify-email')
        response = await client.get(f'/api/user/verify-email/{token}')
        assert response.status_code == 307
        assert response.headers['location'].endswith('email-verified')

        response = await _login(client, 'a@b.com', 'Abc123!')
        assert response.status_code == 200
        body = response.json()
        assert set(body) == {'_id', 'userName', 'email', 'role', 'token', 'refreshToken'}
        assert body['role'] == 'user'
        assert body['userName'] == 'Asha'
        assert response.cookies.get('refreshToken') == body['refreshToken']
        assert token_service.verify(body['token'])['sub'] == body['_id']

    async def test_unverified_login_sends_new_link(self, client: AsyncClient, mail_outbox):
        await _register(client)
        first = mail_outbox.last_token('a@b.com', 'verify-email')

        await _login(client, 'a@b.com', 'Abc123!')

        second = mail_outbox.last_token('a@b.com', 'verify-email')
        assert second != first
        # Only the newest link verifies
        assert (await client.get(f'/api/user/verify-email/{first}')).status_code == 400
        assert (await client.get(f'/api/user/verify-email/{second}')).status_code == 307

    async def test_duplicate_email(self, client: AsyncClient, mail_outbox):
        await _register(client)

        response = await _register(client, name='Other')

        assert response.status_code == 409
        assert response.json()['message'] == 'Email already registered'

    async def test_weak_password(self, client: AsyncClient):
        response = await _register(client, password='abc')

        assert response.status_code == 400
        body = response.json()
        assert body['code'] == 'VALIDATION_ERROR'
        assert 'at least 6 characters' in body['message']
        assert body['errors'][0]['field'] == 'password'

    async def test_numeric_email(self, client: AsyncClient):
        response = await _register(client, email='12345@mail.com')

        assert response.status_code == 400
        assert 'numbers followed by a dot' in response.json()['message']

    async def test_unknown_email_login(self, client: AsyncClient):
        response = await _login(client, 'nobody@b.com', 'Abc123!')

        assert response.status_code == 404
        assert response.json()['message'] == 'Student not found'

    async def test_login_missing_fields(self, client: AsyncClient):
        response = await client.post('/api/user/login', json={'email': 'a@b.com'})

        assert response.status_code == 400
        assert response.json()['message'] == 'Email and password are required'


class TestStudentSessions:
    """Test refresh-token cookie handling"""

    async def test_refresh_with_cookie(self, client: AsyncClient, verified_student):
        await _login(client, verified_student.email, STRONG_PASSWORD)

        response = await client.get('/api/user/refresh-token')

        assert response.status_code == 200
        access = response.json()['accessToken']
        assert token_service.verify(access)['sub'] == verified_student.id

    async def test_refresh_without_cookie(self, client: AsyncClient):
        response = await client.get('/api/user/refresh-token')

        assert response.status_code == 401

    async def test_stale_refresh_token(self, client: AsyncClient, verified_student):
        first = (await _login(client, verified_student.email, STRONG_PASSWORD)).json()['refreshToken']
        await _login(client, verified_student.email, STRONG_PASSWORD)

        client.cookies.clear()
        client.cookies.set('refreshToken', first)
        response = await client.get('/api/user/refresh-token')

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid or expired refresh token'

    async def test_logout(self, client: AsyncClient, verified_student):
        await _login(client, verified_student.email, STRONG_PASSWORD)

        response = await client.get('/api/user/logout')
        assert response.status_code == 200
        assert response.json()['message'] == 'Logged out successfully'
        assert verified_student.refresh_token == ''

        # Nothing left to clear
        response = await client.get('/api/user/logout')
        assert response.status_code == 204

        assert (await client.get('/api/user/refresh-token')).status_code == 401


class TestStudentPasswords:

    async def test_forgot_and_reset_once(self, client: AsyncClient, verified_student, mail_outbox):
        response = await client.post('/api/user/forgot-password-token', json={'email': verified_student.email})
        assert response.status_code == 200
        assert response.json()['message'] == 'Password reset link sent to your email'
        assert 'token' not in response.json()

        token = mail_outbox.last_token(verified_student.email, 'reset-password')
        response = await client.put(f'/api/user/reset-password/{token}', json={'password': 'New!pass1'})
        assert response.status_code == 200

        response = await client.put(f'/api/user/reset-password/{token}', json={'password': 'New!pass2'})
        assert response.status_code == 400
        assert response.json()['message'] == 'Token expired or invalid!'

        assert (await _login(client, verified_student.email, 'New!pass1')).status_code == 200

    async def test_forgot_unknown_email(self, client: AsyncClient):
        response = await client.post('/api/user/forgot-password-token', json={'email': 'nobody@b.com'})

        assert response.status_code == 404

    async def test_update_own_password(self, client: AsyncClient, verified_student, student_headers):
        response = await client.put('/api/user/password', json={'password': 'New!pass1'}, headers=student_headers)

        assert response.status_code == 200
        assert verified_student.check_password('New!pass1')

    async def test_password_requires_session(self, client: AsyncClient):
        response = await client.put('/api/user/password', json={'password': 'New!pass1'})

        assert response.status_code == 401


class TestStudentAccess:
    """Test who may read and change student records"""

    async def test_student_cannot_list_students(self, client: AsyncClient, student_headers):
        response = await client.get('/api/user/', headers=student_headers)

        assert response.status_code == 403
        assert response.json()['message'] == 'Access denied. Only Admin or Super Admin allowed.'

    async def test_admin_lists_students(self, client: AsyncClient, verified_student, admin_headers):
        response = await client.get('/api/user/', headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body['countTotal'] == 1
        assert body['students'][0]['_id'] == verified_student.id

    async def test_get_student(self, client: AsyncClient, verified_student, admin_headers):
        response = await client.get(f'/api/user/get-student/{verified_student.id}', headers=admin_headers)

        assert response.status_code == 200
        assert response.json()['student']['email'] == verified_student.email

    async def test_update_own_profile(self, client: AsyncClient, verified_student, student_headers):
        response = await client.put(
            f'/api/user/update/{verified_student.id}',
            json={'gpa': '3.9', 'workExp': '2 years'},
            headers=student_headers,
        )

        assert response.status_code == 200
        student = response.json()['student']
        assert student['gpa'] == '3.9'
        assert student['workExp'] == '2 years'

    async def test_cannot_update_other_profile(self, client: AsyncClient, student_headers, mail_outbox):
        other = (await _register(client, email='o@b.com')).json()['student']['_id']

        response = await client.put(f'/api/user/update/{other}', json={'gpa': '4.0'}, headers=student_headers)

        assert response.status_code == 403

    async def test_admin_updates_any_profile(self, client: AsyncClient, verified_student, admin_headers):
        response = await client.put(
            f'/api/user/update/{verified_student.id}', json={'gpa': '3.1'}, headers=admin_headers
        )

        assert response.status_code == 200

    async def test_assign_counselor_superadmin_only(self, client: AsyncClient, verified_student, admin,
                                                    admin_headers, superadmin_headers, mail_outbox):
        path = f'/api/user/assign-counselor/{verified_student.id}'

        assert (await client.put(path, json={'counselor': admin.id}, headers=admin_headers)).status_code == 403

        response = await client.put(path, json={'counselor': admin.id}, headers=superadmin_headers)
        assert response.status_code == 200
        assert response.json()['student']['counselor']['id'] == admin.id

        response = await client.get('/api/user/bycounselor', headers=admin_headers)
        assert response.json()['countTotal'] == 1

    async def test_delete_student(self, client: AsyncClient, verified_student, superadmin_headers):
        response = await client.delete(f'/api/user/{verified_student.id}', headers=superadmin_headers)

        assert response.status_code == 200
        assert response.json() == {
            'success': True,
            'message': 'Student deleted successfully',
            'id': verified_student.id,
        }

        response = await client.delete(f'/api/user/{verified_student.id}', headers=superadmin_headers)
        assert response.status_code == 404

    async def test_admin_cannot_delete_student(self, client: AsyncClient, verified_student, admin_headers):
        response = await client.delete(f'/api/user/{verified_student.id}', headers=admin_headers)

        assert response.status_code == 403
        assert response.json()['message'] == 'Only Super Admin allowed.'


class TestApplicationsAndWishlist:

    @pytest.fixture
    async def university(self, db_session) -> University:
        university = University(name='TU Berlin', slug='tu-berlin', country_id=fake.uuid4(), country_name='Germany')
        db_session.add(university)
        await db_session.commit()
        return university

    async def test_apply_once(self, client: AsyncClient, university, student_headers):
        payload = {'university': university.id, 'course': 'MSc Informatics'}

        response = await client.put('/api/user/apply', json=payload, headers=student_headers)
        assert response.status_code == 200
        assert response.json()['student']['university'][0]['name'] == 'TU Berlin'

        response = await client.put('/api/user/apply', json=payload, headers=student_headers)
        assert response.status_code == 400

    async def test_admin_cannot_apply(self, client: AsyncClient, university, admin_headers):
        response = await client.put('/api/user/apply', json={'university': university.id}, headers=admin_headers)

        assert response.status_code == 403

    async def test_wishlist_toggle(self, client: AsyncClient, university, student_headers):
        response = await client.put('/api/user/wishlist', json={'wishlist': university.id}, headers=student_headers)
        assert response.json()['message'] == 'University added to wishlist'

        response = await client.get('/api/user/wishlist', headers=student_headers)
        assert response.json()['wishlist'] == [{'id': university.id, 'name': 'TU Berlin'}]

        response = await client.put('/api/user/wishlist', json={'wishlist': university.id}, headers=student_headers)
        assert response.json()['message'] == 'University removed from wishlist'
        assert response.json()['student']['wishlist'] == []

    async def test_wishlist_unknown_university(self, client: AsyncClient, student_headers):
        response = await client.put('/api/user/wishlist', json={'wishlist': fake.uuid4()}, headers=student_headers)

        assert response.status_code == 404


class TestGoogleSignIn:

    async def test_not_configured(self, client: AsyncClient):
        response = await client.get('/api/user/google')

        assert response.status_code == 503
        assert response.json()['message'] == 'Google sign-in is not configured'

    async def test_consent_redirect_sets_state_cookie(self, client: AsyncClient, google_account):
        response = await client.get('/api/user/google')

        assert response.status_code == 307
        state = client.cookies.get('oauthState')
        assert state
        assert f'state={state}' in response.headers['location']

    async def test_callback_signs_in_new_student(self, client: AsyncClient, db_session, google_account):
        google_account.sign_in_as('new.student@b.com')
        await client.get('/api/user/google')
        state = client.cookies.get('oauthState')

        response = await client.get('/api/user/google/callback', params={'code': 'auth-code', 'state': state})

        assert response.status_code == 307
        assert response.cookies.get('refreshToken')
        assert google_account.codes == ['auth-code']
        student = (await db_session.execute(
            select(Student).where(Student.email == 'new.student@b.com')
        )).scalar_one()
        assert student.google_id == 'google-sub-1'
        assert student.is_verified is True

    async def test_callback_without_state_cookie_refused(self, client: AsyncClient, google_account):
        google_account.sign_in_as('attacker@b.com')

        response = await client.get('/api/user/google/callback', params={'code': 'attacker', 'state': 'anything'})

        assert response.status_code == 401
        assert 'refreshToken' not in response.cookies
        assert google_account.codes == []

    async def test_callback_state_mismatch_refused(self, client: AsyncClient, google_account):
        google_account.sign_in_as('attacker@b.com')
        await client.get('/api/user/google')

        response = await client.get('/api/user/google/callback', params={'code': 'attacker', 'state': 'forged'})

        assert response.status_code == 401
        assert response.json()['message'] == 'Google authentication failed'
        assert 'refreshToken' not in response.cookies

    async def test_callback_without_state_param_refused(self, client: AsyncClient, google_account):
        google_account.sign_in_as('attacker@b.com')
        await client.get('/api/user/google')

        response = await client.get('/api/user/google/callback', params={'code': 'attacker'})

        assert response.status_code == 401
        assert google_account.codes == []

    async def test_id_token_login_links_existing_student(self, client: AsyncClient, verified_student,
                                                         google_account):
        google_account.sign_in_as(verified_student.email, google_id='google-sub-9')

        response = await client.post('/api/user/google/token', json={'credential': 'id-token'})

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {'_id', 'userName', 'email', 'role', 'token', 'refreshToken'}
        assert body['_id'] == verified_student.id
        assert response.cookies.get('refreshToken') == body['refreshToken']
        assert google_account.credentials == ['id-token']
        assert verified_student.google_id == 'google-sub-9'

    async def test_id_token_rejected(self, client: AsyncClient, google_account):
        response = await client.post('/api/user/google/token', json={'credential': 'bogus'})

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid Google credential'

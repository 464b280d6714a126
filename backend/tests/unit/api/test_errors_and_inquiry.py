"""
Unit Tests for Error Responses, Health and Inquiry Endpoints
"""
from httpx import AsyncClient

from abroad_api.core.config import settings
from abroad_api.core.security import TokenService, token_service


class TestErrorResponses:
    """Every error body carries a message"""

    async def test_unknown_route(self, client: AsyncClient):
        response = await client.get('/api/nowhere')

        assert response.status_code == 404
        assert response.json()['message'] == 'Not Found: /api/nowhere'

    async def test_missing_authorization_header(self, client: AsyncClient):
        response = await client.get('/api/checkuser')

        assert response.status_code == 401
        assert response.json()['message'] == 'Authorization header is missing'

    async def test_malformed_token(self, client: AsyncClient):
        response = await client.get('/api/checkuser', headers={'Authorization': 'Bearer not-a-jwt'})

        assert response.status_code == 401
        assert response.json()['code'] == 'INVALID_TOKEN'

    async def test_refresh_token_not_accepted_as_access(self, client: AsyncClient, verified_student):
        refresh = token_service.issue_refresh_token(verified_student.id, verified_student.role)

        response = await client.get('/api/checkuser', headers={'Authorization': f'Bearer {refresh}'})

        assert response.status_code == 401

    async def test_expired_token(self, client: AsyncClient, verified_student):
        expired = TokenService(settings.model_copy(update={'ACCESS_TOKEN_EXPIRE_MINUTES': -1}))
        token = expired.issue_access_token(verified_student.id, verified_student.role)

        response = await client.get('/api/checkuser', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401
        assert response.json()['message'] == 'Token is invalid or expired'

    async def test_validation_error_shape(self, client: AsyncClient):
        response = await client.post('/api/user/register', json={'email': 'not-an-email'})

        assert response.status_code == 400
        body = response.json()
        assert body['message'] == 'Validation failed'
        assert body['code'] == 'VALIDATION_ERROR'
        fields = {error['field'] for error in body['errors']}
        assert {'userName', 'email', 'password'} <= fields

    async def test_security_headers(self, client: AsyncClient):
        response = await client.get('/health')

        assert response.headers['X-Content-Type-Options'] == 'nosniff'


class TestHealth:

    async def test_health(self, client: AsyncClient):
        response = await client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'


class TestCheckUser:

    async def test_student(self, client: AsyncClient, verified_student, student_headers):
        response = await client.get('/api/checkuser', headers=student_headers)

        assert response.status_code == 200
        body = response.json()
        assert body['role'] == 'user'
        assert body['user']['_id'] == verified_student.id

    async def test_superadmin(self, client: AsyncClient, superadmin, superadmin_headers):
        body = (await client.get('/api/checkuser', headers=superadmin_headers)).json()

        assert body['role'] == 'super-admin'
        assert body['user']['adminName'] == superadmin.name


class TestInquiry:

    async def test_inquiry_forwarded(self, client: AsyncClient, mail_outbox):
        response = await client.post('/api/sendenquiry', json={
            'email': 'visitor@b.com', 'fullname': 'Visitor', 'number': '9812345678', 'text': 'Hello',
        })

        assert response.status_code == 200
        assert response.json() == {'success': True, 'message': 'Email sent successfully'}
        sent = mail_outbox.to(settings.INQUIRY_RECIPIENT)
        assert sent[0]['reply_to'] == 'visitor@b.com'

    async def test_inquiry_requires_email(self, client: AsyncClient, mail_outbox):
        response = await client.post('/api/sendenquiry', json={'fullname': 'Visitor'})

        assert response.status_code == 400
        assert response.json()['message'] == 'No sender email provided!'
        assert mail_outbox.messages == []

    async def test_inquiry_markup_escaped(self, client: AsyncClient, mail_outbox):
        await client.post('/api/sendenquiry', json={
            'email': 'visitor@b.com', 'fullname': '<script>x</script>', 'text': 'Hello',
        })

        html = mail_outbox.to(settings.INQUIRY_RECIPIENT)[0]['html']
        assert '<script>' not in html
        assert '<p><strong>Name:</strong> &lt;script&gt;x&lt;/script&gt;</p>' in html

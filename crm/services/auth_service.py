# crm/services/auth_service.py
from datetime import datetime, timedelta, timezone

import jwt

from ..errors import Unauthorized

ACCESS = 'access'
REFRESH = 'refresh'


class AuthService:
    """Issues and verifies the bearer tokens used by every protected route."""

    def __init__(self, user_service, secret, algorithm='HS256', access_expires_minutes=60, refresh_expires_days=7):
        self.user_service = user_service
        self.secret = secret
        self.algorithm = algorithm
        self.access_ttl = timedelta(minutes=access_expires_minutes)
        self.refresh_ttl = timedelta(days=refresh_expires_days)

    def validate_user(self, email, password):
        user = self.user_service.get_user_by_email(email)
        if not user or not password or not self.user_service.verify_password(user, password):
            raise Unauthorized('Invalid email or password')
        return user

    def _encode(self, user, token_type, ttl):
        now = datetime.now(timezone.utc)
        payload = {
            'sub': user.id,
            'id': user.id,
            'email': user.email,
            'role': user.role,
            'type': token_type,
            'iat': now,
            'exp': now + ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def login(self, user):
        return {
            'access_token': self._encode(user, ACCESS, self.access_ttl),
            'refresh_token': self._encode(user, REFRESH, self.refresh_ttl),
        }

    def decode(self, token, expected_type=ACCESS):
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as e:
            raise Unauthorized('Token has expired') from e
        except jwt.InvalidTokenError as e:
            raise Unauthorized('Invalid token') from e

        if not payload.get('id') or not payload.get('email') or payload.get('type') != expected_type:
            raise Unauthorized('Invalid token payload')
        return payload

    def refresh(self, refresh_token):
        payload = self.decode(refresh_token, expected_type=REFRESH)
        user = self.user_service.get_user(payload['id'])
        if not user:
            raise Unauthorized('Invalid token payload')
        return self.login(user)

    def load_user_from_header(self, auth_header):
        """Resolves 'Bearer <token>' to a user, or None when absent or invalid."""
        if not auth_header or not auth_header.startswith('Bearer '):
            return None
        try:
            payload = self.decode(auth_header[len('Bearer '):].strip())
        except Unauthorized:
            return None
        return self.user_service.get_user(payload['id'])

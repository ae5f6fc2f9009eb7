"""Authentication utility helpers."""

from study_companion.errors import AuthenticationError


def verify_firebase_token(request, auth_module, logger):
    """Return decoded Firebase token dict, or None when invalid/missing."""
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    token = auth_header.split('Bearer ', 1)[1]
    try:
        return auth_module.verify_id_token(token)
    except Exception as exc:
        if logger is not None:
            logger.info(f"Token verification failed: {exc}")
        return None


def display_name_from_token(decoded_token):
    return (
        str(decoded_token.get('name', '') or '').strip()
        or str(decoded_token.get('email', '') or '').strip()
        or 'User'
    )[:120]


def normalized_email(decoded_token):
    return str(decoded_token.get('email', '') or '').strip().lower()


def require_user(request, auth_module, logger):
    """Decoded token for the request, raising AuthenticationError when absent."""
    decoded_token = verify_firebase_token(request, auth_module, logger)
    if not decoded_token or not decoded_token.get('uid'):
        raise AuthenticationError('Unauthorized')
    return decoded_token

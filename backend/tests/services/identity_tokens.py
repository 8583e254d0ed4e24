"""Signed bearer tokens for route tests, as the identity provider would issue them."""

import jwt

TEST_SECRET = "test-secret"


def make_token(subject: str, secret: str = TEST_SECRET, **claims) -> str:
    return jwt.encode({"sub": subject, **claims}, secret, algorithm="HS256")


def auth_headers(user_or_subject) -> dict[str, str]:
    """Bearer header for a User row or a bare identity subject."""
    subject = getattr(user_or_subject, "external_id", user_or_subject)
    return {"Authorization": f"Bearer {make_token(subject)}"}

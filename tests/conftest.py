from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

# Settings are read once at import; pin them before anything imports lms.
os.environ["APP_ENV"] = "test"
os.environ["JWT_SECRET"] = "test-jwt-secret-0123456789abcdef0123456789"
os.environ["SHOPIFY_API_SECRET"] = "test-shopify-api-secret-0123456789abcdef"
os.environ["SHOPIFY_WEBHOOK_SECRET"] = "test-webhook-secret-0123456789abcdef"
os.environ["SHOPIFY_LINK_SECRET"] = "test-link-secret-0123456789abcdef"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ.pop("DATABASE_URL", None)
os.environ.pop("ALLOW_UNSIGNED_LOGIN_LINKS", None)

import asyncio  # noqa: E402

import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from lms.api.dependencies import memory_store  # noqa: E402
from lms.core.config import SETTINGS  # noqa: E402
from lms.main import app  # noqa: E402
from lms.models.course import Course  # noqa: E402
from lms.models.user import User  # noqa: E402
from lms.repos.store import Store  # noqa: E402
from lms.services import signature_service, token_service  # noqa: E402


@pytest.fixture(autouse=True)
def reset_memory_store() -> None:
    """Clear the process-wide in-memory repos between tests."""
    memory_store.users.clear()  # type: ignore[attr-defined]
    memory_store.courses.clear()  # type: ignore[attr-defined]
    memory_store.enrollments.clear()  # type: ignore[attr-defined]
    memory_store.progress.clear()  # type: ignore[attr-defined]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def store() -> Store:
    return memory_store


@pytest.fixture
def user(store: Store) -> User:
    u = User.new(shopify_customer_id="1001", email="learner@example.com", name="Lea Learner")
    asyncio.run(store.users.add(u))
    return u


@pytest.fixture
def other_user(store: Store) -> User:
    u = User.new(shopify_customer_id="2002", email="other@example.com")
    asyncio.run(store.users.add(u))
    return u


@pytest.fixture
def course(store: Store) -> Course:
    c = Course.new(
        shopify_product_id="555",
        title="Intro to SCORM",
        scorm_url="https://cdn.example.com/scorm/intro/index.html",
    )
    asyncio.run(store.courses.add(c))
    return c


def session_token(u: User) -> str:
    return token_service.create_session_token(user_id=str(u.id), customer_id=u.shopify_customer_id)


@pytest.fixture
def token_for() -> Callable[[User], str]:
    return session_token


@pytest.fixture
def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {session_token(user)}"}


@pytest.fixture
def storefront_token() -> Callable[..., str]:
    """Mint a storefront session token signed with the app's API secret."""

    def _mint(sub: object = "gid://shopify/Customer/1001", **claims: object) -> str:
        now = datetime.now(UTC)
        payload: dict[str, object] = {
            "iss": "https://shop.example.com/admin",
            "dest": "https://shop.example.com",
            "aud": "app-api-key",
            "exp": now + timedelta(minutes=1),
            "iat": now,
            **claims,
        }
        if sub is not None:
            payload["sub"] = sub
        return jwt.encode(payload, SETTINGS.shopify_api_secret, algorithm="HS256")

    return _mint


@pytest.fixture
def post_webhook(client: TestClient) -> Callable[..., object]:
    """POST a correctly signed webhook delivery."""

    def _post(path: str, payload: dict, *, topic: str = "orders/create", signature: str | None = None):
        body = json.dumps(payload).encode()
        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Topic": topic,
            "X-Shopify-Shop-Domain": "shop.example.com",
            "X-Shopify-Hmac-Sha256": signature
            or signature_service.webhook_signature(SETTINGS.webhook_secret, body),
        }
        return client.post(f"/api/webhooks/shopify/{path}", content=body, headers=headers)

    return _post


@pytest.fixture
def order_payload() -> Callable[..., dict]:
    """Build a minimal paid-order webhook payload."""
    return _order_payload


def _order_payload(
    *,
    order_id: int = 9001,
    customer_id: int = 1001,
    product_ids: tuple[object, ...] = (555,),
    **extra: object,
) -> dict:
    return {
        "id": order_id,
        "order_number": 1042,
        "financial_status": "paid",
        "customer": {
            "id": customer_id,
            "email": "Learner@Example.com",
            "first_name": "Lea",
            "last_name": "Learner",
        },
        "line_items": [{"id": i, "product_id": pid} for i, pid in enumerate(product_ids)],
        **extra,
    }

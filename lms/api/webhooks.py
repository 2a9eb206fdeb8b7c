"""Storefront webhook receivers.

Every delivery goes through ``verified_webhook`` before its handler runs:

  1. the three Shopify headers must be present (400 otherwise)
  2. the HMAC-SHA256 of the *raw* body must match X-Shopify-Hmac-Sha256
     (401 otherwise); the body is verified before it is parsed, since
     re-serialized JSON would not hash the same
  3. the body must be a JSON object (400 otherwise)

Handlers answer ``{"success": true}`` once the sync completes, including
when individual line items were skipped.  An error response makes Shopify
redeliver, which is safe because every sync operation is idempotent.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from lms.api.dependencies import StoreDep
from lms.core.config import SETTINGS
from lms.core.errors import BadRequest, Misconfigured, Unauthenticated
from lms.core.metrics import WEBHOOKS_RECEIVED
from lms.services import catalog_service, identity_service, order_service, signature_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks/shopify", tags=["webhooks"])

HMAC_HEADER = "x-shopify-hmac-sha256"
SHOP_HEADER = "x-shopify-shop-domain"
TOPIC_HEADER = "x-shopify-topic"


@dataclass(frozen=True, slots=True)
class WebhookDelivery:
    topic: str
    shop_domain: str
    payload: dict[str, Any]

    @property
    def log_extra(self) -> dict[str, str]:
        return {"topic": self.topic, "shop_domain": self.shop_domain}


async def verified_webhook(request: Request) -> WebhookDelivery:
    signature = request.headers.get(HMAC_HEADER)
    shop_domain = request.headers.get(SHOP_HEADER)
    topic = request.headers.get(TOPIC_HEADER)
    if not signature or not shop_domain or not topic:
        WEBHOOKS_RECEIVED.labels(topic=topic or "unverified", outcome="rejected").inc()
        logger.warning("Webhook missing Shopify headers on %s", request.url.path)
        raise BadRequest("Missing required Shopify webhook headers")

    secret = SETTINGS.webhook_secret
    if not secret:
        raise Misconfigured("Webhook secret not configured")

    raw_body = await request.body()
    if not signature_service.verify_webhook_signature(secret, raw_body, signature):
        WEBHOOKS_RECEIVED.labels(topic=topic, outcome="rejected").inc()
        logger.warning(
            "Invalid webhook signature topic=%s shop=%s",
            topic,
            shop_domain,
            extra={"topic": topic, "shop_domain": shop_domain},
        )
        raise Unauthenticated("Invalid webhook signature")

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise BadRequest("Webhook body is not valid JSON") from None
    if not isinstance(payload, dict):
        raise BadRequest("Webhook body must be a JSON object")

    return WebhookDelivery(topic=topic, shop_domain=shop_domain, payload=payload)


WebhookDep = Annotated[WebhookDelivery, Depends(verified_webhook)]


@contextmanager
def _tracked(delivery: WebhookDelivery) -> Iterator[None]:
    try:
        yield
    except Exception:
        WEBHOOKS_RECEIVED.labels(topic=delivery.topic, outcome="failed").inc()
        raise
    WEBHOOKS_RECEIVED.labels(topic=delivery.topic, outcome="processed").inc()


@router.post("/order-created")
async def order_created(delivery: WebhookDep, store: StoreDep) -> dict[str, bool]:
    order = delivery.payload
    logger.info(
        "Order received number=%s shop=%s",
        order.get("order_number"),
        delivery.shop_domain,
        extra=delivery.log_extra,
    )
    with _tracked(delivery):
        result = await order_service.process_order(store, order)
    for item in result.skipped:
        logger.info(
            "Skipped line item product=%s reason=%s",
            item.product_id,
            item.reason,
            extra=delivery.log_extra,
        )
    return {"success": True}


@router.post("/order-updated")
async def order_updated(delivery: WebhookDep, store: StoreDep) -> dict[str, bool]:
    order = delivery.payload
    logger.info(
        "Order updated number=%s financial_status=%s",
        order.get("order_number"),
        order.get("financial_status"),
        extra=delivery.log_extra,
    )
    with _tracked(delivery):
        await order_service.update_order_status(store, order)
    return {"success": True}


@router.post("/product-created")
async def product_created(delivery: WebhookDep, store: StoreDep) -> dict[str, bool]:
    logger.info("Product created title=%r", delivery.payload.get("title"), extra=delivery.log_extra)
    with _tracked(delivery):
        await catalog_service.upsert_course(store.courses, delivery.payload)
    return {"success": True}


@router.post("/product-updated")
async def product_updated(delivery: WebhookDep, store: StoreDep) -> dict[str, bool]:
    logger.info("Product updated title=%r", delivery.payload.get("title"), extra=delivery.log_extra)
    with _tracked(delivery):
        await catalog_service.upsert_course(store.courses, delivery.payload)
    return {"success": True}


@router.post("/customers-create")
async def customers_create(delivery: WebhookDep, store: StoreDep) -> dict[str, bool]:
    logger.info("Customer created id=%s", delivery.payload.get("id"), extra=delivery.log_extra)
    with _tracked(delivery):
        await identity_service.sync_customer(store.users, delivery.payload)
    return {"success": True}


@router.post("/customers-update")
async def customers_update(delivery: WebhookDep, store: StoreDep) -> dict[str, bool]:
    logger.info("Customer updated id=%s", delivery.payload.get("id"), extra=delivery.log_extra)
    with _tracked(delivery):
        await identity_service.sync_customer(store.users, delivery.payload)
    return {"success": True}

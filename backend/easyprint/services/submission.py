import logging
import os
from typing import Any, Dict, Optional

import requests

from easyprint.db.session import get_session
from easyprint.services.orders import OrderValidationError, create_order

logger = logging.getLogger(__name__)

ORDERS_API_URL = os.getenv("ORDERS_API_URL", "http://localhost:8000/orders")


class OrderSubmissionError(Exception):
    """Order could not be created; ``reason`` is meant to be shown as-is."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class OrderSubmitter:
    """Hands one flattened order payload to persistence and returns the order number."""

    def submit(self, payload: Dict[str, Any]) -> str:
        raise NotImplementedError


class DatabaseOrderSubmitter(OrderSubmitter):
    def __init__(self, user_email: Optional[str] = None):
        self.user_email = user_email

    def submit(self, payload: Dict[str, Any]) -> str:
        session = get_session()
        try:
            order = create_order(session, payload, user_email=self.user_email)
            return order.order_number
        except OrderValidationError as e:
            raise OrderSubmissionError(str(e))
        except Exception as e:
            logger.exception("Failed to persist order: %s", e)
            session.rollback()
            raise OrderSubmissionError("Failed to create order. Please try again.")
        finally:
            session.close()


class HttpOrderClient(OrderSubmitter):
    """Posts orders to a remote orders API. Single attempt, no retries."""

    def __init__(self, orders_url: str = None, user_email: Optional[str] = None, timeout: float = 10):
        self.orders_url = orders_url or ORDERS_API_URL
        self.user_email = user_email
        self.timeout = timeout
        logger.debug("HttpOrderClient initialized with orders_url=%s", self.orders_url)

    def _error_reason(self, resp: requests.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return resp.text or "Unknown error"
        if not isinstance(body, dict):
            return str(body)
        reason = body.get("detail") or body.get("error") or body.get("details") or "Unknown error"
        if isinstance(reason, list):
            # FastAPI validation errors: [{"loc": [...], "msg": "..."}, ...]
            msgs = [str(item.get("msg") or "") if isinstance(item, dict) else str(item) for item in reason]
            return "; ".join(m for m in msgs if m) or "Unknown error"
        if isinstance(reason, dict):
            return str(reason.get("description") or reason.get("title") or reason)
        return str(reason)

    def submit(self, payload: Dict[str, Any]) -> str:
        headers = {"Content-Type": "application/json"}
        if self.user_email:
            headers["X-User-Email"] = self.user_email

        try:
            logger.debug("Submitting order url=%s", self.orders_url)
            resp = requests.post(self.orders_url, json=payload, timeout=self.timeout, headers=headers)
        except requests.RequestException as e:
            logger.warning("Order submission to %s failed: %s", self.orders_url, e)
            raise OrderSubmissionError(f"Network error: {e}")

        if not resp.ok:
            reason = self._error_reason(resp)
            logger.warning("Order rejected status=%s reason=%s", resp.status_code, reason)
            raise OrderSubmissionError(reason)

        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.warning("Unreadable orders response status=%s body=%.200s", resp.status_code, resp.text)
            raise OrderSubmissionError("Invalid response from orders service")

        order = data.get("order")
        if not isinstance(order, dict):
            order = {}
        order_number = order.get("order_number") or data.get("order_number")
        if not order_number:
            raise OrderSubmissionError("Order created but no order number was returned")
        logger.info("Submitted order number=%s", order_number)
        return order_number

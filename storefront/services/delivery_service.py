import json
import logging
import re

import httpx
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from storefront.database import transaction
from storefront.errors import Conflict, DeliveryError, InvalidArgument, NotFound
from storefront.models.delivery_company import DeliveryCompany, PriceCalculation
from storefront.models.order import Order, OrderStatus
from storefront.models.product import Product
from storefront.schemas.delivery import DeliveryCompanyCreate, DeliveryCompanyUpdate, DeliveryResult, DeliveryStatusOut
from storefront.services.order_service import DISPATCHABLE_STATUSES, OrderService

logger = logging.getLogger(__name__)

# Used when the order carries no coordinates
DEFAULT_LATITUDE = "31.889883437603157"
DEFAULT_LONGITUDE = "35.01046782913909"


class DeliveryService:
    """Delivery partner registry and order hand-off.

    Orders are only handed over after checkout has committed their stock; a
    partner failure is reported to the caller and never returns stock.
    """

    def __init__(self, order_service: OrderService, timeout: float = 15.0, transport: httpx.BaseTransport | None = None):
        self.order_service = order_service
        self.timeout = timeout
        self.transport = transport

    # --- Company registry ---

    def list_companies(self, db: Session) -> list[DeliveryCompany]:
        return list(db.scalars(select(DeliveryCompany).order_by(DeliveryCompany.name)))

    def get_company(self, db: Session, company_id: str) -> DeliveryCompany:
        company = db.get(DeliveryCompany, company_id)
        if company is None:
            raise NotFound("Delivery company not found")
        return company

    def create_company(self, db: Session, data: DeliveryCompanyCreate) -> DeliveryCompany:
        name = data.name.strip()
        code = data.code.strip().upper()
        if not name or not code or not data.api_url.strip():
            raise InvalidArgument("Company name, code and API URL are required")
        with transaction(db):
            self._ensure_unique(db, name, code)
            company = DeliveryCompany(
                name=name,
                code=code,
                api_url=data.api_url.strip(),
                credentials=data.credentials.model_dump_json(),
                is_active=data.is_active,
                supported_regions=json.dumps(data.supported_regions),
                price_calculation=data.price_calculation,
                base_price=data.base_price,
            )
            db.add(company)
        db.refresh(company)
        return company

    def update_company(self, db: Session, company_id: str, data: DeliveryCompanyUpdate) -> DeliveryCompany:
        update_data = data.model_dump(exclude_unset=True)
        with transaction(db):
            company = self.get_company(db, company_id)
            if update_data.get("name") is not None:
                update_data["name"] = update_data["name"].strip()
            if update_data.get("code") is not None:
                update_data["code"] = update_data["code"].strip().upper()
            self._ensure_unique(db, update_data.get("name"), update_data.get("code"), exclude_id=company.id)
            if data.credentials is not None:
                update_data["credentials"] = data.credentials.model_dump_json()
            if data.supported_regions is not None:
                update_data["supported_regions"] = json.dumps(data.supported_regions)
            for field, value in update_data.items():
                if value is not None:
                    setattr(company, field, value)
        db.refresh(company)
        return company

    def delete_company(self, db: Session, company_id: str) -> None:
        with transaction(db):
            db.delete(self.get_company(db, company_id))

    def _ensure_unique(self, db: Session, name: str | None, code: str | None, exclude_id: str | None = None) -> None:
        clauses = []
        if name:
            clauses.append(DeliveryCompany.name == name)
        if code:
            clauses.append(DeliveryCompany.code == code)
        if not clauses:
            return
        stmt = select(DeliveryCompany).where(or_(*clauses))
        if exclude_id:
            stmt = stmt.where(DeliveryCompany.id != exclude_id)
        if db.scalars(stmt).first() is not None:
            raise Conflict("A delivery company with this name or code already exists")

    # --- Partner payloads ---

    def format_order_for_company(self, order: Order, company: DeliveryCompany) -> dict:
        credentials = json.loads(company.credentials or "{}")
        if company.code == "THREE_MINDS":
            return {
                "jsonrpc": "2.0",
                "params": {
                    "login": credentials.get("login", ""),
                    "password": credentials.get("password", ""),
                    "db": credentials.get("database", ""),
                    "orders_list": [{
                        "customer_address": order.ship_street,
                        "customer_mobile": re.sub(r"\D", "", order.customer_mobile),
                        "customer_name": order.customer_name,
                        "customer_area": order.ship_city,
                        "cost": order.total_amount,
                        "order_type_id": "1",
                        "latitude": order.ship_latitude or DEFAULT_LATITUDE,
                        "longitude": order.ship_longitude or DEFAULT_LONGITUDE,
                    }],
                },
            }
        if company.code == "ARAMEX":
            return {
                "shipments": [{
                    "reference": order.order_number,
                    "recipient": {
                        "name": order.customer_name,
                        "phone": order.customer_mobile,
                        "email": order.customer_email,
                        "address": {
                            "line1": order.ship_street,
                            "city": order.ship_city,
                            "country": order.ship_country,
                        },
                    },
                    "weight": 1,
                    "cod_amount": order.total_amount,
                }],
            }
        raise InvalidArgument(f"Unsupported delivery company: {company.code}")

    def parse_response(self, body: dict, company_code: str) -> DeliveryResult:
        if company_code == "THREE_MINDS":
            result = body.get("result") or {}
            error = body.get("error")
            return DeliveryResult(
                success=not error,
                tracking_number=result.get("tracking_number"),
                status=result.get("status") or "pending",
                message=error.get("message") if isinstance(error, dict) else error,
            )
        if company_code == "ARAMEX":
            data = body.get("data") or {}
            return DeliveryResult(
                success=bool(body.get("success")),
                tracking_number=data.get("tracking_number"),
                status=data.get("status") or "pending",
                message=body.get("error"),
            )
        return DeliveryResult(success=False, message="Unknown delivery company response format")

    # --- Hand-off ---

    def send_order(self, db: Session, order_id: str, company_id: str) -> DeliveryResult:
        order = self.order_service.get_order(db, order_id)
        if OrderStatus(order.status) not in DISPATCHABLE_STATUSES:
            raise InvalidArgument(
                f"Order {order.order_number} is {OrderStatus(order.status).value} and cannot be sent for delivery"
            )
        if not order.ship_street or not order.customer_mobile:
            raise InvalidArgument("Missing required order information")
        if len(re.sub(r"\D", "", order.customer_mobile)) < 10:
            raise InvalidArgument("Invalid mobile number")

        company = self.get_company(db, company_id)
        if not company.is_active:
            raise InvalidArgument("Delivery company is not active")
        payload = self.format_order_for_company(order, company)

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(company.api_url, json=payload)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("Delivery API %s rejected order %s: %s", company.code, order.order_number, e)
            raise DeliveryError(self._partner_message(e.response)) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Delivery API %s failed for order %s: %s", company.code, order.order_number, e)
            raise DeliveryError("Failed to send order to delivery service") from e

        result = self.parse_response(body, company.code)
        if not result.success:
            raise DeliveryError(result.message or "Delivery service error")

        self.order_service.record_dispatch(db, order.id, company.id, result.tracking_number or "", result.status)
        logger.info("Order %s handed to %s, tracking %s", order.order_number, company.code, result.tracking_number)
        return result

    def get_delivery_status(self, db: Session, order_id: str, company_id: str) -> DeliveryStatusOut:
        """Tracking details stored when the order was handed to ``company_id``."""
        order = self.order_service.get_order(db, order_id)
        company = self.get_company(db, company_id)
        if order.delivery_company_id != company.id:
            raise NotFound(f"Order {order.order_number} was not sent to {company.name}")
        return DeliveryStatusOut(
            order_id=order.id,
            order_number=order.order_number,
            company_name=company.name,
            order_status=OrderStatus(order.status).value,
            tracking_number=order.tracking_number,
            delivery_status=order.delivery_status,
            last_update=order.updated_at,
        )

    def calculate_fee(self, db: Session, order_id: str, company_id: str) -> float:
        order = self.order_service.get_order(db, order_id)
        company = self.get_company(db, company_id)
        if company.price_calculation == PriceCalculation.WEIGHT:
            weights = dict(db.execute(
                select(Product.id, Product.weight).where(Product.id.in_([i.product_id for i in order.items]))
            ).all())
            total_weight = sum(weights.get(i.product_id, 0.0) * i.quantity for i in order.items)
            return company.base_price * total_weight
        # fixed, and distance until a mapping service is wired in
        return company.base_price

    @staticmethod
    def _partner_message(response: httpx.Response) -> str:
        try:
            return response.json().get("message") or "Failed to send order to delivery service"
        except (ValueError, AttributeError):
            return "Failed to send order to delivery service"

"""
Shopify payload mapping

Pure translation from Shopify REST payloads to the domain field sets.
Remote data is untrusted: every field is optional, numbers may arrive as
strings, and nothing here raises on a bad value. Unparsable required
amounts become zero, unparsable optional amounts become None, and absent
timestamps stay unset. Numbers outside the storage range count as
unparsable and text is cut to its column length.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, TypedDict

from shopsync.domain import CustomerData, OrderData, OrderItemData, ProductData

DEFAULT_CURRENCY = "USD"


# ============================================================================
# Remote payload shapes (subset consumed; every key may be missing)
# ============================================================================

class ShopifyCustomerPayload(TypedDict, total=False):
    id: Any
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    phone: Optional[str]
    total_spent: Any
    orders_count: Any
    created_at: Optional[str]
    updated_at: Optional[str]


class ShopifyVariantPayload(TypedDict, total=False):
    price: Any
    compare_at_price: Any
    inventory_quantity: Any


class ShopifyProductPayload(TypedDict, total=False):
    id: Any
    title: Optional[str]
    handle: Optional[str]
    vendor: Optional[str]
    product_type: Optional[str]
    status: Optional[str]
    variants: List[ShopifyVariantPayload]
    created_at: Optional[str]
    updated_at: Optional[str]


class ShopifyLineItemPayload(TypedDict, total=False):
    id: Any
    product_id: Any
    title: Optional[str]
    quantity: Any
    price: Any
    total_discount: Any
    sku: Optional[str]
    variant_title: Optional[str]


class ShopifyOrderPayload(TypedDict, total=False):
    id: Any
    order_number: Any
    email: Optional[str]
    financial_status: Optional[str]
    fulfillment_status: Optional[str]
    total_price: Any
    subtotal_price: Any
    total_tax: Any
    total_discounts: Any
    currency: Optional[str]
    customer: Optional[Dict[str, Any]]
    line_items: List[ShopifyLineItemPayload]
    created_at: Optional[str]
    updated_at: Optional[str]


# ============================================================================
# Coercion helpers
# ============================================================================

# Storage limits: DECIMAL(12, 2) amounts, 32-bit counters, 64-char remote IDs
MAX_AMOUNT = Decimal('9999999999.99')
MAX_INT = 2 ** 31 - 1
MAX_REMOTE_ID_LENGTH = 64


def to_text(value: Any, max_length: Optional[int] = None) -> Optional[str]:
    """Non-empty string or None (empty strings count as absent), cut to max_length"""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    if max_length is not None:
        text = text[:max_length].rstrip()
    return text or None


def to_remote_id(value: Any) -> Optional[str]:
    """Remote IDs arrive as ints or strings; booleans and over-long values are not IDs"""
    if isinstance(value, bool):
        return None
    remote_id = to_text(value)
    if remote_id is not None and len(remote_id) > MAX_REMOTE_ID_LENGTH:
        return None
    return remote_id


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse an amount; None when absent, unparsable or too large to store"""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
        return None
    return amount


def to_int(value: Any) -> Optional[int]:
    """Parse an integer; None when absent, unparsable or out of 32-bit range"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        return None
    if abs(number) > MAX_INT:
        return None
    return number


def to_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; absent or unparsable stays unset"""
    text = to_text(value)
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        return None


def _first(items: Any) -> Dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


# ============================================================================
# Mappers
# ============================================================================

def map_customer(raw: ShopifyCustomerPayload) -> CustomerData:
    """Shopify customer -> CustomerData"""
    total_spent = to_decimal(raw.get('total_spent')) or Decimal('0')
    orders_count = to_int(raw.get('orders_count')) or 0

    return CustomerData(
        remote_id=to_remote_id(raw.get('id')),
        email=to_text(raw.get('email'), 255),
        first_name=to_text(raw.get('first_name'), 255),
        last_name=to_text(raw.get('last_name'), 255),
        phone=to_text(raw.get('phone'), 64),
        total_spent=max(total_spent, Decimal('0')),
        orders_count=max(orders_count, 0),
        remote_created_at=to_datetime(raw.get('created_at')),
        remote_updated_at=to_datetime(raw.get('updated_at')),
    )


def map_product(raw: ShopifyProductPayload) -> ProductData:
    """Shopify product -> ProductData (pricing from the first variant)"""
    variant = _first(raw.get('variants'))

    return ProductData(
        remote_id=to_remote_id(raw.get('id')),
        title=to_text(raw.get('title')) or '',
        handle=to_text(raw.get('handle'), 255),
        vendor=to_text(raw.get('vendor'), 255),
        product_type=to_text(raw.get('product_type'), 255),
        status=to_text(raw.get('status'), 50),
        price=to_decimal(variant.get('price')),
        compare_at_price=to_decimal(variant.get('compare_at_price')),
        inventory_quantity=to_int(variant.get('inventory_quantity')) or 0,
        remote_created_at=to_datetime(raw.get('created_at')),
        remote_updated_at=to_datetime(raw.get('updated_at')),
    )


def map_line_item(raw: ShopifyLineItemPayload) -> OrderItemData:
    """Shopify order line item -> OrderItemData"""
    quantity = to_int(raw.get('quantity')) or 0

    return OrderItemData(
        remote_product_id=to_remote_id(raw.get('product_id')),
        title=to_text(raw.get('title'), 500) or '',
        quantity=max(quantity, 1),
        price=to_decimal(raw.get('price')) or Decimal('0'),
        total_discount=to_decimal(raw.get('total_discount')),
        sku=to_text(raw.get('sku'), 100),
        variant_title=to_text(raw.get('variant_title'), 255),
    )


def map_order(raw: ShopifyOrderPayload) -> OrderData:
    """Shopify order -> OrderData with its line items"""
    customer = raw.get('customer')
    customer_remote_id = to_remote_id(customer.get('id')) if isinstance(customer, dict) else None

    line_items = raw.get('line_items')
    if not isinstance(line_items, list):
        line_items = []

    return OrderData(
        remote_id=to_remote_id(raw.get('id')),
        order_number=to_text(raw.get('order_number'), 100),
        email=to_text(raw.get('email'), 255),
        financial_status=to_text(raw.get('financial_status'), 50),
        fulfillment_status=to_text(raw.get('fulfillment_status'), 50),
        total_price=to_decimal(raw.get('total_price')) or Decimal('0'),
        subtotal_price=to_decimal(raw.get('subtotal_price')),
        total_tax=to_decimal(raw.get('total_tax')),
        total_discounts=to_decimal(raw.get('total_discounts')),
        currency=to_text(raw.get('currency'), 10) or DEFAULT_CURRENCY,
        customer_remote_id=customer_remote_id,
        remote_created_at=to_datetime(raw.get('created_at')),
        remote_updated_at=to_datetime(raw.get('updated_at')),
        line_items=[map_line_item(item) for item in line_items if isinstance(item, dict)],
    )

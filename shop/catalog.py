"""
Catalog read-models and manager-side catalog maintenance.

Visibility rule: inactive products exist only for managers. Anonymous and
client callers never list them and get ``Forbidden`` when asking by id.
"""
import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction

from accounts.permissions import is_manager
from storefront.errors import BadRequest, Conflict, Forbidden, NotFound

from .filters import ProductFilter
from .models import Category, Like, Product, ProductImage

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
MAX_NAME_LENGTH = 100
PRICE_QUANTUM = Decimal("0.01")

PRODUCT_FIELDS = ("name", "description", "price", "stock", "is_active")


def _products():
    return Product.objects.prefetch_related("images", "categories")


# --- Products ---

def list_products(viewer=None, *, search_by_name=None, category=None, liked_only=None, page=1, limit=10):
    if page < 1:
        raise BadRequest("Page must be a positive number.")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise BadRequest(f"Limit must be between 1 and {MAX_PAGE_SIZE}.")

    data = {
        "search_by_name": search_by_name,
        "category": category,
        "liked_only": liked_only,
    }
    if not is_manager(viewer):
        data["is_active"] = True
    data = {key: value for key, value in data.items() if value not in (None, "")}

    filterset = ProductFilter(data, queryset=_products(), viewer=viewer)
    offset = (page - 1) * limit
    return list(filterset.qs[offset:offset + limit])


def get_product(product_id, viewer=None):
    product = _products().filter(pk=product_id).first()
    if product is None:
        raise NotFound("Product not found", description="No product matching requested id")
    if not product.is_active and not is_manager(viewer):
        raise Forbidden("Do not have permission to request product.")
    return product


def _clean_price(value):
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise BadRequest("Invalid price format provided. Ensure it is a valid decimal number.")
    if not price.is_finite() or price <= Decimal("0"):
        raise BadRequest("Price must be a positive number.")
    if price != price.quantize(PRICE_QUANTUM):
        raise BadRequest("Price cannot have more than 2 decimal places.")
    return price


def clean_product_data(data, partial=False):
    """Validate product input, returning only the fields that were provided."""
    cleaned = {key: data[key] for key in PRODUCT_FIELDS if data.get(key) is not None}

    if not partial:
        for required in ("name", "price", "stock"):
            if required not in cleaned:
                raise BadRequest(f"Field '{required}' is required.")

    if "name" in cleaned:
        name = cleaned["name"].strip()
        if not name:
            raise BadRequest("Name cannot be empty.")
        if len(name) > MAX_NAME_LENGTH:
            raise BadRequest(f"Name cannot be longer than {MAX_NAME_LENGTH} characters.")
        cleaned["name"] = name
    if "price" in cleaned:
        cleaned["price"] = _clean_price(cleaned["price"])
    if "stock" in cleaned and cleaned["stock"] < 0:
        raise BadRequest("Stock cannot be a negative number.")
    return cleaned


def _categories_for(category_ids):
    unique_ids = set(category_ids)
    categories = list(Category.objects.filter(id__in=unique_ids))
    if len(categories) != len(unique_ids):
        invalid_ids = sorted(unique_ids - {c.id for c in categories})
        raise BadRequest(f"One or more category IDs are invalid: {', '.join(map(str, invalid_ids))}")
    return categories


@transaction.atomic
def create_product(data):
    cleaned = clean_product_data(data)
    categories = _categories_for(data.get("category_ids") or [])
    product = Product.objects.create(**cleaned)
    product.categories.set(categories)
    logger.info("Created product %s", product.pk)
    return _products().get(pk=product.pk)


def update_product(product_id, data):
    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        raise NotFound("Product not found", description="No product matching requested id")
    cleaned = clean_product_data(data, partial=True)
    for field, value in cleaned.items():
        setattr(product, field, value)
    product.save()
    return _products().get(pk=product.pk)


def remove_product(product_id):
    product = _products().filter(pk=product_id).first()
    if product is None:
        raise NotFound("Product not found", description="No product matching requested id")
    # Products referenced by order details are protected; that surfaces as Conflict.
    pk = product.pk
    product.delete()
    product.pk = pk
    logger.info("Removed product %s", pk)
    return product


def attach_image(product_id, image_url):
    if not Product.objects.filter(pk=product_id).exists():
        raise NotFound("Product not found", description="No product matching requested id")
    ProductImage.objects.create(product_id=product_id, url=image_url)
    return _products().get(pk=product_id)


# --- Categories ---

def _clean_category_name(name):
    name = (name or "").strip()
    if not name:
        raise BadRequest("Category name cannot be empty.")
    if len(name) > MAX_NAME_LENGTH:
        raise BadRequest(f"Category name cannot be longer than {MAX_NAME_LENGTH} characters.")
    return name


def list_categories():
    return list(Category.objects.all())


def get_category(category_id):
    category = Category.objects.filter(pk=category_id).first()
    if category is None:
        raise NotFound("Category not found", description="No category matching requested id")
    return category


def create_category(name):
    name = _clean_category_name(name)
    if Category.objects.filter(name=name).exists():
        raise Conflict(f"Category '{name}' already exists.")
    return Category.objects.create(name=name)


def update_category(category_id, name):
    category = get_category(category_id)
    name = _clean_category_name(name)
    if Category.objects.filter(name=name).exclude(pk=category.pk).exists():
        raise Conflict(f"Category '{name}' already exists.")
    category.name = name
    category.save(update_fields=["name"])
    return category


def remove_category(category_id):
    category = get_category(category_id)
    pk = category.pk
    category.delete()
    category.pk = pk
    return category


# --- Likes ---

def is_liked(product, viewer):
    if viewer is None:
        return None
    return Like.objects.filter(user_id=viewer.id, product_id=product.pk).exists()


@transaction.atomic
def toggle_like(viewer, product_id):
    """Like the product, or unlike it when already liked. Returns the new state."""
    product = get_product(product_id, viewer)
    deleted, _ = Like.objects.filter(user_id=viewer.id, product_id=product.pk).delete()
    if deleted:
        return False
    Like.objects.create(user_id=viewer.id, product_id=product.pk)
    return True

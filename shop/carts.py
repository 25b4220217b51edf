from django.db.models import Prefetch

from storefront.errors import BadRequest, NotFound

from . import catalog
from .models import Cart, CartItem, Product


def _carts():
    items = CartItem.objects.select_related("product").prefetch_related(
        "product__images", "product__categories"
    ).order_by("id")
    return Cart.objects.prefetch_related(Prefetch("items", queryset=items))


def get_cart(viewer):
    cart = _carts().filter(user_id=viewer.id).first()
    if cart is None:
        raise NotFound("Cart not found", description="No cart belongs to the authenticated user")
    return cart


def _cart_id(viewer):
    cart_id = Cart.objects.filter(user_id=viewer.id).values_list("id", flat=True).first()
    if cart_id is None:
        raise NotFound("Cart not found", description="No cart belongs to the authenticated user")
    return cart_id


def update_cart_item(viewer, product_id, quantity):
    """Set the quantity of a product in the cart; zero removes it."""
    if quantity < 0:
        raise BadRequest("Invalid request was sent.", description="Quantity cannot be a negative number")
    product = catalog.get_product(product_id, viewer)
    cart_id = _cart_id(viewer)

    if quantity > 0:
        CartItem.objects.update_or_create(
            cart_id=cart_id,
            product_id=product.pk,
            defaults={"quantity": quantity},
        )
    else:
        CartItem.objects.filter(cart_id=cart_id, product_id=product.pk).delete()
    return get_cart(viewer)


def remove_cart_item(viewer, product_id):
    if not Product.objects.filter(pk=product_id, is_active=True).exists():
        raise NotFound(
            "No such active product could be found",
            description="No active product with given id was found",
        )
    deleted, _ = CartItem.objects.filter(cart_id=_cart_id(viewer), product_id=product_id).delete()
    if not deleted:
        raise NotFound("Product is not in the cart")
    return get_cart(viewer)


def clear_cart(viewer):
    """Remove every item; the cart itself stays."""
    CartItem.objects.filter(cart__user_id=viewer.id).delete()
    return get_cart(viewer)

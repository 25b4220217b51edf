import graphene
from graphene_django.types import DjangoObjectType

from accounts.models import RoleName, User
from accounts.permissions import authorize, get_viewer

from . import carts, catalog, gateways, orders
from .models import (
    Cart,
    CartItem,
    Category,
    Order,
    OrderDetail,
    Payment,
    PaymentIntent,
    Product,
    ProductImage,
)

CLIENT = RoleName.CLIENT
MANAGER = RoleName.MANAGER

# --- 1. Graphene Types (Outputs) ---

class CustomerType(DjangoObjectType):
    class Meta:
        model = User
        fields = ('id', 'email', 'first_name', 'last_name', 'phone')


class CategoryType(DjangoObjectType):
    class Meta:
        model = Category
        fields = ('id', 'name')


class ProductImageType(DjangoObjectType):
    class Meta:
        model = ProductImage
        fields = ('id', 'url')


class ProductType(DjangoObjectType):
    liked = graphene.Boolean(
        description="Whether the authenticated user likes the product. Null for anonymous callers."
    )

    class Meta:
        model = Product
        fields = ('id', 'name', 'description', 'price', 'stock', 'is_active', 'categories', 'images')

    def resolve_liked(product, info):
        return catalog.is_liked(product, get_viewer(info.context))


class CartItemType(DjangoObjectType):
    item_total = graphene.Decimal(required=True)

    class Meta:
        model = CartItem
        fields = ('product', 'quantity')


class CartType(DjangoObjectType):
    total_amount = graphene.Decimal(required=True)

    class Meta:
        model = Cart
        fields = ('id', 'items', 'created_at')


class PaymentIntentType(DjangoObjectType):
    class Meta:
        model = PaymentIntent
        fields = ('id', 'stripe_payment_id', 'status', 'status_info', 'created_at', 'updated_at')


class PaymentType(DjangoObjectType):
    amount = graphene.Decimal(required=True)

    class Meta:
        model = Payment
        fields = ('id', 'amount_in_cents', 'currency', 'payment_intents', 'created_at', 'updated_at')


class OrderDetailType(DjangoObjectType):
    class Meta:
        model = OrderDetail
        fields = ('product', 'unit_price', 'quantity')


class OrderType(DjangoObjectType):
    total_amount = graphene.Decimal(required=True)
    payment = graphene.Field(PaymentType)

    class Meta:
        model = Order
        fields = ('id', 'customer', 'status', 'ship_date', 'created_at', 'updated_at', 'details', 'payment')

    def resolve_payment(order, info):
        try:
            return order.payment
        except Payment.DoesNotExist:
            return None


class SignedUploadPayloadType(graphene.ObjectType):
    upload_url = graphene.String(required=True)
    api_key = graphene.String(required=True)
    timestamp = graphene.String(required=True)
    signature = graphene.String(required=True)


# --- 2. Graphene Inputs (Used for Arguments in Mutations) ---

class ProductInput(graphene.InputObjectType):
    name = graphene.String(required=True)
    description = graphene.String()
    price = graphene.Decimal(required=True)
    stock = graphene.Int(required=True)
    category_ids = graphene.List(graphene.NonNull(graphene.Int), default_value=[])
    is_active = graphene.Boolean(default_value=True)


class UpdateProductInput(graphene.InputObjectType):
    name = graphene.String()
    description = graphene.String()
    price = graphene.Decimal()
    stock = graphene.Int()
    is_active = graphene.Boolean()


class CategoryInput(graphene.InputObjectType):
    name = graphene.String(required=True)


# --- 3. Mutation Classes ---

class CreateProduct(graphene.Mutation):
    class Arguments:
        input = ProductInput(required=True)

    product = graphene.Field(ProductType)

    @staticmethod
    def mutate(root, info, input):
        authorize(info.context, MANAGER)
        return CreateProduct(product=catalog.create_product(dict(input)))


class UpdateProduct(graphene.Mutation):
    class Arguments:
        id = graphene.UUID(required=True)
        input = UpdateProductInput(required=True)

    product = graphene.Field(ProductType)

    @staticmethod
    def mutate(root, info, id, input):
        authorize(info.context, MANAGER)
        return UpdateProduct(product=catalog.update_product(id, dict(input)))


class RemoveProduct(graphene.Mutation):
    class Arguments:
        id = graphene.UUID(required=True)

    product = graphene.Field(ProductType)

    @staticmethod
    def mutate(root, info, id):
        authorize(info.context, MANAGER)
        return RemoveProduct(product=catalog.remove_product(id))


class AttachProductImage(graphene.Mutation):
    class Arguments:
        product_id = graphene.UUID(required=True)
        image_public_url = graphene.String(required=True)

    product = graphene.Field(ProductType)

    @staticmethod
    def mutate(root, info, product_id, image_public_url):
        authorize(info.context, MANAGER)
        return AttachProductImage(product=catalog.attach_image(product_id, image_public_url))


class GenerateSignedUploadPayload(graphene.Mutation):
    Output = SignedUploadPayloadType

    @staticmethod
    def mutate(root, info):
        authorize(info.context, MANAGER)
        return gateways.get_upload_signer().signed_upload_payload()


class CreateCategory(graphene.Mutation):
    class Arguments:
        input = CategoryInput(required=True)

    category = graphene.Field(CategoryType)

    @staticmethod
    def mutate(root, info, input):
        authorize(info.context, MANAGER)
        return CreateCategory(category=catalog.create_category(input.name))


class UpdateCategory(graphene.Mutation):
    class Arguments:
        id = graphene.Int(required=True)
        input = CategoryInput(required=True)

    category = graphene.Field(CategoryType)

    @staticmethod
    def mutate(root, info, id, input):
        authorize(info.context, MANAGER)
        return UpdateCategory(category=catalog.update_category(id, input.name))


class RemoveCategory(graphene.Mutation):
    class Arguments:
        id = graphene.Int(required=True)

    category = graphene.Field(CategoryType)

    @staticmethod
    def mutate(root, info, id):
        authorize(info.context, MANAGER)
        return RemoveCategory(category=catalog.remove_category(id))


class UpdateCartItem(graphene.Mutation):
    class Arguments:
        product_id = graphene.UUID(required=True)
        quantity = graphene.Int(required=True)

    cart = graphene.Field(CartType)

    @staticmethod
    def mutate(root, info, product_id, quantity):
        viewer = authorize(info.context, CLIENT)
        return UpdateCartItem(cart=carts.update_cart_item(viewer, product_id, quantity))


class RemoveCartItem(graphene.Mutation):
    class Arguments:
        product_id = graphene.UUID(required=True)

    cart = graphene.Field(CartType)

    @staticmethod
    def mutate(root, info, product_id):
        viewer = authorize(info.context, CLIENT)
        return RemoveCartItem(cart=carts.remove_cart_item(viewer, product_id))


class ClearCart(graphene.Mutation):
    cart = graphene.Field(CartType)

    @staticmethod
    def mutate(root, info):
        viewer = authorize(info.context, CLIENT)
        return ClearCart(cart=carts.clear_cart(viewer))


class ToggleLike(graphene.Mutation):
    class Arguments:
        product_id = graphene.UUID(required=True)

    liked = graphene.Boolean(required=True)

    @staticmethod
    def mutate(root, info, product_id):
        viewer = authorize(info.context, CLIENT)
        return ToggleLike(liked=catalog.toggle_like(viewer, product_id))


# --- 4. Shop App Root Query and Mutation ---

class ShopQuery(graphene.ObjectType):
    """
    Root query fields for the shop app.
    Catalog and category reads are public; everything else needs a token.
    """
    all_products = graphene.List(
        graphene.NonNull(ProductType),
        required=True,
        search_by_name=graphene.String(),
        category=graphene.String(),
        liked_only=graphene.Boolean(),
        page=graphene.Int(default_value=1),
        limit=graphene.Int(default_value=10),
    )
    product = graphene.Field(ProductType, required=True, id=graphene.UUID(required=True))
    categories = graphene.List(graphene.NonNull(CategoryType), required=True)
    category = graphene.Field(CategoryType, required=True, id=graphene.Int(required=True))
    cart = graphene.Field(CartType, required=True)
    all_orders = graphene.List(graphene.NonNull(OrderType), required=True, status=graphene.String())
    my_orders = graphene.List(graphene.NonNull(OrderType), required=True)
    order = graphene.Field(OrderType, required=True, order_id=graphene.UUID(required=True))

    def resolve_all_products(root, info, page, limit, search_by_name=None, category=None, liked_only=None):
        return catalog.list_products(
            get_viewer(info.context),
            search_by_name=search_by_name,
            category=category,
            liked_only=liked_only,
            page=page,
            limit=limit,
        )

    def resolve_product(root, info, id):
        return catalog.get_product(id, get_viewer(info.context))

    def resolve_categories(root, info):
        return catalog.list_categories()

    def resolve_category(root, info, id):
        return catalog.get_category(id)

    def resolve_cart(root, info):
        return carts.get_cart(authorize(info.context, CLIENT))

    def resolve_all_orders(root, info, status=None):
        authorize(info.context, MANAGER)
        return orders.find_all(status=status)

    def resolve_my_orders(root, info):
        viewer = authorize(info.context, CLIENT)
        return orders.find_all(customer_id=viewer.id)

    def resolve_order(root, info, order_id):
        viewer = authorize(info.context, CLIENT, MANAGER)
        return orders.find_one(order_id, viewer)


class ShopMutation(graphene.ObjectType):
    """
    Aggregates all the individual mutation classes.
    """
    create_product = CreateProduct.Field()
    update_product = UpdateProduct.Field()
    remove_product = RemoveProduct.Field()
    attach_product_image = AttachProductImage.Field()
    generate_signed_upload_payload = GenerateSignedUploadPayload.Field()
    create_category = CreateCategory.Field()
    update_category = UpdateCategory.Field()
    remove_category = RemoveCategory.Field()
    update_cart_item = UpdateCartItem.Field()
    remove_cart_item = RemoveCartItem.Field()
    clear_cart = ClearCart.Field()
    toggle_like = ToggleLike.Field()

from decimal import Decimal

import pytest
from django.db.models import ProtectedError

from shop import catalog, orders
from shop.models import Category, Like, Product
from storefront.errors import BadRequest, Conflict, Forbidden, NotFound

pytestmark = pytest.mark.django_db


@pytest.fixture
def shelf(make_product):
    shirts = Category.objects.create(name="Shirts")
    shoes = Category.objects.create(name="Shoes")
    blue = make_product(name="Blue Shirt")
    red = make_product(name="Red Shirt")
    boots = make_product(name="Boots", price="80.00")
    hidden = make_product(name="Hidden Shirt", is_active=False)
    blue.categories.add(shirts)
    red.categories.add(shirts)
    hidden.categories.add(shirts)
    boots.categories.add(shoes, shirts)
    return {"blue": blue, "red": red, "boots": boots, "hidden": hidden, "shirts": shirts, "shoes": shoes}


def names(products):
    return [p.name for p in products]


class TestListProducts:
    def test_anonymous_sees_only_active_products(self, shelf):
        assert names(catalog.list_products()) == ["Blue Shirt", "Boots", "Red Shirt"]

    def test_manager_sees_inactive_products(self, shelf, manager):
        assert "Hidden Shirt" in names(catalog.list_products(manager))

    def test_search_is_case_insensitive(self, shelf, customer):
        assert names(catalog.list_products(customer, search_by_name="SHIRT")) == ["Blue Shirt", "Red Shirt"]

    def test_category_filter_does_not_duplicate(self, shelf):
        assert names(catalog.list_products(category="Shirts")) == ["Blue Shirt", "Boots", "Red Shirt"]
        assert names(catalog.list_products(category="Shoes")) == ["Boots"]

    def test_liked_only(self, shelf, customer, client_user):
        Like.objects.create(user=client_user, product=shelf["red"])

        assert names(catalog.list_products(customer, liked_only=True)) == ["Red Shirt"]
        # Anonymous callers have no likes to filter by.
        assert len(catalog.list_products(liked_only=True)) == 3

    def test_pagination(self, shelf):
        assert names(catalog.list_products(page=1, limit=2)) == ["Blue Shirt", "Boots"]
        assert names(catalog.list_products(page=2, limit=2)) == ["Red Shirt"]
        assert catalog.list_products(page=3, limit=2) == []

    @pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (1, 101)])
    def test_bad_pagination(self, page, limit):
        with pytest.raises(BadRequest):
            catalog.list_products(page=page, limit=limit)


class TestGetProduct:
    def test_inactive_product_is_forbidden_for_clients(self, shelf, customer, manager):
        with pytest.raises(Forbidden):
            catalog.get_product(shelf["hidden"].pk, customer)
        with pytest.raises(Forbidden):
            catalog.get_product(shelf["hidden"].pk)
        assert catalog.get_product(shelf["hidden"].pk, manager).name == "Hidden Shirt"

    def test_unknown_product(self):
        with pytest.raises(NotFound):
            catalog.get_product("00000000-0000-0000-0000-000000000000")


class TestProductMaintenance:
    def test_create_product_with_categories(self):
        shirts = Category.objects.create(name="Shirts")

        product = catalog.create_product(
            {"name": "  Polo ", "price": "19.90", "stock": 3, "category_ids": [shirts.pk]}
        )

        assert product.name == "Polo"
        assert product.price == Decimal("19.90")
        assert product.is_active is True
        assert list(product.categories.all()) == [shirts]

    def test_unknown_category_creates_nothing(self):
        with pytest.raises(BadRequest) as excinfo:
            catalog.create_product({"name": "Polo", "price": "19.90", "stock": 3, "category_ids": [999]})

        assert "999" in excinfo.value.message
        assert Product.objects.count() == 0

    @pytest.mark.parametrize(
        "data",
        [
            {"name": "Polo", "price": "0", "stock": 1},
            {"name": "Polo", "price": "1.999", "stock": 1},
            {"name": "Polo", "price": "abc", "stock": 1},
            {"name": "Polo", "price": "1.00", "stock": -1},
            {"name": "   ", "price": "1.00", "stock": 1},
            {"price": "1.00", "stock": 1},
        ],
    )
    def test_invalid_product_data(self, data):
        with pytest.raises(BadRequest):
            catalog.create_product(data)

    def test_partial_update(self, make_product):
        product = make_product(name="Shirt", price="10.00", stock=5)

        updated = catalog.update_product(product.pk, {"stock": 12, "is_active": False})

        assert updated.stock == 12
        assert updated.is_active is False
        assert updated.price == Decimal("10.00")

    def test_remove_product(self, make_product):
        product = make_product()

        removed = catalog.remove_product(product.pk)

        assert removed.pk == product.pk
        assert not Product.objects.filter(pk=product.pk).exists()

    def test_ordered_product_cannot_be_removed(self, make_product, client_user, customer, add_to_cart):
        product = make_product()
        add_to_cart(client_user, product, 1)
        orders.create(customer)

        with pytest.raises(ProtectedError):
            catalog.remove_product(product.pk)
        assert Product.objects.filter(pk=product.pk).exists()

    def test_attach_image(self, make_product):
        product = make_product()

        updated = catalog.attach_image(product.pk, "https://res.cloudinary.com/demo/image/upload/shirt.jpg")

        assert [image.url for image in updated.images.all()] == [
            "https://res.cloudinary.com/demo/image/upload/shirt.jpg"
        ]


class TestCategories:
    def test_duplicate_names_conflict(self):
        catalog.create_category("Shirts")
        shoes = catalog.create_category("Shoes")

        with pytest.raises(Conflict):
            catalog.create_category("Shirts")
        with pytest.raises(Conflict):
            catalog.update_category(shoes.pk, "Shirts")

    def test_rename_and_remove(self):
        category = catalog.create_category("Shirt")

        assert catalog.update_category(category.pk, "Shirts").name == "Shirts"
        assert catalog.remove_category(category.pk).pk == category.pk
        assert catalog.list_categories() == []
        with pytest.raises(NotFound):
            catalog.get_category(category.pk)


class TestLikes:
    def test_toggle_like(self, make_product, customer):
        product = make_product()

        assert catalog.toggle_like(customer, product.pk) is True
        assert catalog.is_liked(product, customer) is True
        assert catalog.toggle_like(customer, product.pk) is False
        assert catalog.is_liked(product, customer) is False

    def test_anonymous_like_state_is_unknown(self, make_product):
        assert catalog.is_liked(make_product(), None) is None

    def test_cannot_like_inactive_product(self, make_product, customer):
        product = make_product(is_active=False)

        with pytest.raises(Forbidden):
            catalog.toggle_like(customer, product.pk)

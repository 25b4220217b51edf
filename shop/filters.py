from django_filters import BooleanFilter, CharFilter, FilterSet

from .models import Order, Product


class ProductFilter(FilterSet):
    """
    Filter set for the Product model, enabling searches by name, category, likes and activity.
    ``viewer`` is the authenticated caller (or None); liked-only filtering needs one.
    """
    # Case-insensitive partial match
    search_by_name = CharFilter(field_name='name', lookup_expr='icontains')

    # A product can sit in several categories
    category = CharFilter(field_name='categories__name', lookup_expr='exact', distinct=True)

    liked_only = BooleanFilter(method='filter_liked_only')

    is_active = BooleanFilter(field_name='is_active')

    class Meta:
        model = Product
        fields = ['search_by_name', 'category', 'liked_only', 'is_active']

    def __init__(self, data=None, queryset=None, *, viewer=None, **kwargs):
        super().__init__(data=data, queryset=queryset, **kwargs)
        self.viewer = viewer

    def filter_liked_only(self, queryset, name, value):
        """If true and the caller is known, keeps only products the caller liked."""
        if value and self.viewer is not None:
            return queryset.filter(likes__user_id=self.viewer.id).distinct()
        return queryset


class OrderFilter(FilterSet):
    customer_id = CharFilter(field_name='customer_id', lookup_expr='exact')
    status = CharFilter(field_name='status', lookup_expr='exact')

    class Meta:
        model = Order
        fields = ['customer_id', 'status']

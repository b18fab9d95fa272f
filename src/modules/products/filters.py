import django_filters
from django.db.models import F

from modules.products.constants import ProductCategory, ProductStatus
from modules.products.models import Product


class ProductFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    sku = django_filters.CharFilter(field_name="sku", lookup_expr="iexact")
    brand = django_filters.CharFilter(field_name="brand", lookup_expr="icontains")
    category = django_filters.ChoiceFilter(choices=ProductCategory.choices)
    status = django_filters.ChoiceFilter(choices=ProductStatus.choices)
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    in_stock = django_filters.BooleanFilter(method="filter_in_stock")

    class Meta:
        model = Product
        fields = ["name", "sku", "brand", "category", "status", "min_price", "max_price", "in_stock"]

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(stock_total__gt=F("stock_reserved"))
        return queryset.filter(stock_total__lte=F("stock_reserved"))

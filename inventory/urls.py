from django.urls import path

from .views import (
    InventoryHealthView,
    MovementAnalyticsView,
    MovementApproveView,
    MovementBulkCreateView,
    MovementCompleteView,
    MovementDetailView,
    MovementListCreateView,
    ProductMovementsView,
)

urlpatterns = [
    path("health/", InventoryHealthView.as_view(), name="inventory-health"),
    path("movements/", MovementListCreateView.as_view(), name="movement-list"),
    path("movements/bulk/", MovementBulkCreateView.as_view(), name="movement-bulk"),
    path("movements/analytics/", MovementAnalyticsView.as_view(), name="movement-analytics"),
    path("movements/product/<int:product_id>/", ProductMovementsView.as_view(), name="product-movements"),
    path("movements/<int:movement_id>/", MovementDetailView.as_view(), name="movement-detail"),
    path("movements/<int:movement_id>/approve/", MovementApproveView.as_view(), name="movement-approve"),
    path("movements/<int:movement_id>/complete/", MovementCompleteView.as_view(), name="movement-complete"),
]

# EOF

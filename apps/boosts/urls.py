from django.urls import path

from .views import (
    BoostDetailView,
    BoostListCreateView,
    BoostsByIdentificationNumberView,
    PaidBoostsView,
    PaidCountView,
    PaidFilterView,
    PaidTotalView,
    PayBoostFeeView,
    PaymentCallbackView,
)

urlpatterns = [
    path("", BoostListCreateView.as_view(), name="boost-list"),
    path("by-id/<str:identification_number>/", BoostsByIdentificationNumberView.as_view(), name="boost-by-id-number"),
    path("pay/", PayBoostFeeView.as_view(), name="boost-pay"),
    path("pay/callback/", PaymentCallbackView.as_view(), name="boost-pay-callback"),
    path("paid/", PaidBoostsView.as_view(), name="boost-paid"),
    path("paid/total/", PaidTotalView.as_view(), name="boost-paid-total"),
    path("paid/count/", PaidCountView.as_view(), name="boost-paid-count"),
    path("paid/filter/", PaidFilterView.as_view(), name="boost-paid-filter"),
    path("<int:pk>/", BoostDetailView.as_view(), name="boost-detail"),
]

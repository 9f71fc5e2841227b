from django.urls import path
from . import views

urlpatterns = [
    path('calculate-price/', views.CalculatePriceView.as_view(), name='calculate-price'),
    path('orders/', views.OrderListCreateView.as_view(), name='order-list-create'),
    path('orders/<int:pk>/', views.OrderDetailView.as_view(), name='order-detail'),
]

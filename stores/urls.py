from django.urls import path
from . import views

urlpatterns = [
    path('', views.StoreListCreateView.as_view(), name='store-list-create'),
    path('<slug:store_slug>/', views.StoreDetailView.as_view(), name='store-detail'),
    path('<slug:store_slug>/public/', views.StorePublicView.as_view(), name='store-public'),
]

from django.urls import path
from . import views

urlpatterns = [
    # Store identity management
    path('users/', views.StoreUserListCreateView.as_view(), name='store-user-list-create'),
    path('users/<int:pk>/', views.StoreUserDetailView.as_view(), name='store-user-detail'),
]

from django.urls import path
from . import views

urlpatterns = [
    path('wholesalers/', views.WholesalerAgreementListCreateView.as_view(), name='wholesaler-list-create'),
    path('wholesalers/stats/', views.WholesalerStatsView.as_view(), name='wholesaler-stats'),
    path('wholesalers/<int:pk>/', views.WholesalerAgreementDetailView.as_view(), name='wholesaler-detail'),
    path('wholesalers/<int:pk>/terminate/', views.WholesalerAgreementTerminateView.as_view(), name='wholesaler-terminate'),
    path('wholesalers/<int:pk>/resume/', views.WholesalerAgreementResumeView.as_view(), name='wholesaler-resume'),
    path('wholesalers/<int:pk>/verify/', views.WholesalerAgreementVerifyView.as_view(), name='wholesaler-verify'),
    path('wholesalers/status/<int:user_id>/', views.WholesalerStatusView.as_view(), name='wholesaler-status'),
]

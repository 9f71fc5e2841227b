from django.shortcuts import get_object_or_404
from django.db.models import Avg, Count, Q
from django.utils import timezone
from rest_framework import generics, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from users.mixins import StoreScopedMixin
from users.permissions import IsActiveIdentity, IsStoreAdminOrSuperAdmin
from .models import WholesalerAgreement
from .resolver import resolve, resume, terminate
from .serializers import (
    WholesalerAgreementSerializer, WholesalerAgreementCreateSerializer, WholesalerAgreementUpdateSerializer,
    WholesalerStatusQuerySerializer
)


class WholesalerAgreementListCreateView(StoreScopedMixin, generics.ListCreateAPIView):
    """List a store's wholesaler agreements or grant a new one (Store Admin only)"""
    queryset = WholesalerAgreement.objects.select_related('user', 'store').all()
    permission_classes = [IsAuthenticated, IsActiveIdentity, IsStoreAdminOrSuperAdmin]
    filterset_fields = ['user', 'is_verified']

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return WholesalerAgreementCreateSerializer
        return WholesalerAgreementSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['now'] = timezone.now()
        return context


class WholesalerAgreementDetailView(StoreScopedMixin, generics.RetrieveUpdateAPIView):
    """Retrieve an agreement or update its business details"""
    queryset = WholesalerAgreement.objects.select_related('user', 'store').all()
    http_method_names = ['get', 'patch', 'head', 'options']
    permission_classes = [IsAuthenticated, IsActiveIdentity, IsStoreAdminOrSuperAdmin]

    def get_serializer_class(self):
        if self.request.method == 'PATCH':
            return WholesalerAgreementUpdateSerializer
        return WholesalerAgreementSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['now'] = timezone.now()
        return context


class WholesalerAgreementTerminateView(StoreScopedMixin, generics.GenericAPIView):
    """End an agreement now; one that has not started yet is cancelled"""
    queryset = WholesalerAgreement.objects.all()
    permission_classes = [IsAuthenticated, IsActiveIdentity, IsStoreAdminOrSuperAdmin]

    def post(self, request, *args, **kwargs):
        agreement = terminate(self.get_object())
        if agreement is None:
            return Response({'message': 'Agreement cancelled'}, status=status.HTTP_200_OK)
        return Response(WholesalerAgreementSerializer(agreement, context={'now': timezone.now()}).data)


class WholesalerAgreementResumeView(StoreScopedMixin, generics.GenericAPIView):
    """Start a new open-ended agreement from an ended one"""
    queryset = WholesalerAgreement.objects.select_related('user', 'store').all()
    permission_classes = [IsAuthenticated, IsActiveIdentity, IsStoreAdminOrSuperAdmin]

    def post(self, request, *args, **kwargs):
        agreement = resume(self.get_object())
        return Response(
            WholesalerAgreementSerializer(agreement, context={'now': timezone.now()}).data,
            status=status.HTTP_201_CREATED
        )


class WholesalerAgreementVerifyView(StoreScopedMixin, generics.GenericAPIView):
    queryset = WholesalerAgreement.objects.all()
    permission_classes = [IsAuthenticated, IsActiveIdentity, IsStoreAdminOrSuperAdmin]

    def post(self, request, *args, **kwargs):
        agreement = self.get_object()
        agreement.verify(request.user)
        return Response(WholesalerAgreementSerializer(agreement, context={'now': timezone.now()}).data)


class WholesalerStatusView(StoreScopedMixin, generics.GenericAPIView):
    """
    Wholesaler status of a store identity.
    Store admins may query anyone in their store; other users only themselves.
    """
    permission_classes = [IsAuthenticated, IsActiveIdentity]

    def get(self, request, store_slug, user_id):
        store = self.get_store()
        user = request.user
        if not (user.is_superadmin or user.is_store_admin or user.pk == user_id):
            raise PermissionDenied("You may only check your own wholesaler status.")

        query = WholesalerStatusQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        as_of = query.validated_data.get('as_of') or timezone.now()

        target = get_object_or_404(store.users.all(), pk=user_id)
        result = resolve(target.pk, store.pk, as_of=as_of)

        return Response({
            'user': target.pk,
            'store': store.slug,
            'as_of': as_of,
            'is_wholesaler': result.is_active,
            'discount_rate': getattr(result, 'discount_rate', None),
            'agreement': getattr(result, 'agreement_id', None),
        })


class WholesalerStatsView(StoreScopedMixin, generics.GenericAPIView):
    """Agreement counts for the store and the average rate of running agreements"""
    queryset = WholesalerAgreement.objects.all()
    permission_classes = [IsAuthenticated, IsActiveIdentity, IsStoreAdminOrSuperAdmin]

    def get(self, request, *args, **kwargs):
        now = timezone.now()
        agreements = self.get_queryset()
        running = Q(active_from__lte=now) & (Q(active_to__isnull=True) | Q(active_to__gt=now))

        stats = agreements.aggregate(
            total=Count('id'),
            running=Count('id', filter=running),
            scheduled=Count('id', filter=Q(active_from__gt=now)),
            ended=Count('id', filter=Q(active_to__lte=now)),
            verified=Count('id', filter=Q(is_verified=True)),
        )
        stats['average_discount_rate'] = agreements.active_at(now).aggregate(
            rate=Avg('discount_rate')
        )['rate']
        stats['store'] = self.get_store().slug
        stats['as_of'] = now
        return Response(stats)

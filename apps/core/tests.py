from django.contrib.auth import get_user_model
from django.test import TestCase, RequestFactory
from rest_framework import status
from rest_framework.test import APITestCase, APIRequestFactory, force_authenticate
from rest_framework.views import APIView
from rest_framework.response import Response

from .base_views import BusinessScopedMixin
from .middleware import BusinessContextMiddleware
from .models import Business, BusinessUser
from .permissions import IsBusinessMember, IsBusinessOwner

User = get_user_model()


class BusinessModelTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username='owner', password='testpass123')
        self.staff = User.objects.create_user(username='staff', password='testpass123', role='staff')
        self.outsider = User.objects.create_user(username='outsider', password='testpass123')
        self.business = Business.objects.create(name='Duka Letu', slug='duka-letu', owner=self.owner)

    def test_business_str(self):
        self.assertEqual(str(self.business), 'Duka Letu')

    def test_owner_is_member(self):
        self.assertTrue(self.business.is_member(self.owner))

    def test_active_staff_is_member(self):
        BusinessUser.objects.create(business=self.business, user=self.staff)
        self.assertTrue(self.business.is_member(self.staff))

    def test_deleted_staff_is_not_member(self):
        BusinessUser.objects.create(business=self.business, user=self.staff, is_deleted=True)
        self.assertFalse(self.business.is_member(self.staff))

    def test_outsider_is_not_member(self):
        self.assertFalse(self.business.is_member(self.outsider))


class PermissionTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.owner = User.objects.create_user(username='owner', password='testpass123')
        self.staff = User.objects.create_user(username='staff', password='testpass123')
        self.admin = User.objects.create_superuser(username='admin', password='testpass123')
        self.business = Business.objects.create(name='Duka', slug='duka', owner=self.owner)
        BusinessUser.objects.create(business=self.business, user=self.staff)

    def _request(self, user):
        request = self.factory.get('/')
        request.user = user
        return request

    def test_owner_permission(self):
        permission = IsBusinessOwner()
        self.assertTrue(permission.has_object_permission(self._request(self.owner), None, self.business))
        self.assertFalse(permission.has_object_permission(self._request(self.staff), None, self.business))
        self.assertTrue(permission.has_object_permission(self._request(self.admin), None, self.business))

    def test_member_permission(self):
        permission = IsBusinessMember()
        self.assertTrue(permission.has_object_permission(self._request(self.staff), None, self.business))


class BusinessContextMiddlewareTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.middleware = BusinessContextMiddleware(lambda request: None)

    def test_reads_header(self):
        request = self.factory.get('/', HTTP_X_BUSINESS_ID='7')
        self.middleware.process_request(request)
        self.assertEqual(request.business_id, '7')

    def test_reads_query_param(self):
        request = self.factory.get('/', {'businessId': '9'})
        self.middleware.process_request(request)
        self.assertEqual(request.business_id, '9')

    def test_missing(self):
        request = self.factory.get('/')
        self.middleware.process_request(request)
        self.assertIsNone(request.business_id)


class ScopedView(BusinessScopedMixin, APIView):
    owner_only = False

    def get(self, request):
        business = self.get_business(request, owner_only=self.owner_only)
        return Response({'id': business.pk})


class OwnerOnlyView(ScopedView):
    owner_only = True


class BusinessScopedMixinTests(APITestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.owner = User.objects.create_user(username='owner', password='testpass123')
        self.staff = User.objects.create_user(username='staff', password='testpass123')
        self.outsider = User.objects.create_user(username='outsider', password='testpass123')
        self.business = Business.objects.create(name='Duka', slug='duka', owner=self.owner)
        BusinessUser.objects.create(business=self.business, user=self.staff)

    def _get(self, view, user, params):
        request = self.factory.get('/', params)
        force_authenticate(request, user=user)
        return view.as_view()(request)

    def test_member_resolves_business(self):
        response = self._get(ScopedView, self.staff, {'businessId': self.business.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], self.business.pk)

    def test_missing_business_id(self):
        response = self._get(ScopedView, self.owner, {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'success': False, 'error': 'Business ID is required'})

    def test_invalid_business_id(self):
        response = self._get(ScopedView, self.owner, {'businessId': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid business ID')

    def test_unknown_business(self):
        response = self._get(ScopedView, self.owner, {'businessId': 99999})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])

    def test_outsider_denied(self):
        response = self._get(ScopedView, self.outsider, {'businessId': self.business.pk})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, {'success': False, 'error': 'Access denied'})

    def test_owner_only_rejects_staff(self):
        response = self._get(OwnerOnlyView, self.staff, {'businessId': self.business.pk})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_owner_only_allows_owner(self):
        response = self._get(OwnerOnlyView, self.owner, {'businessId': self.business.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

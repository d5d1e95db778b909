from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

# Staff obtain tokens here; storefront visitors browse anonymously.
auth_patterns = [
    path("token/", TokenObtainPairView.as_view(), name="catalog-token"),
    path("token/refresh/", TokenRefreshView.as_view(), name="catalog-token-refresh"),
]

docs_patterns = [
    path("schema/", SpectacularAPIView.as_view(), name="catalog-schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="catalog-schema"), name="catalog-docs"),
]

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("modules.core.urls")),
    path("api/v1/", include("modules.products.urls")),
    path("api/v1/auth/", include(auth_patterns)),
    path("api/", include(docs_patterns)),
]

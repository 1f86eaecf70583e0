from django.urls import include, path

urlpatterns = [
    path("api/v1/health/", include("health.urls")),
    path("api/v1/audit/", include("apps.audit.urls")),
    path("api/v1/", include("apps.simulations.urls")),
]

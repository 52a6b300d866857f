from rest_framework.routers import SimpleRouter

from .api import VehicleViewSet

app_name = "vehicles"

router = SimpleRouter()
router.register("", VehicleViewSet, basename="vehicle")

urlpatterns = router.urls

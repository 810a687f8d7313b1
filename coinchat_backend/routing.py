import calls.routing
import notifications.routing

websocket_urlpatterns = (
    notifications.routing.websocket_urlpatterns
    + calls.routing.websocket_urlpatterns
)

from typing import Optional

from fastapi import FastAPI

from modules.notifications.service import NotificationService


def create_test_app(
    routers, service: Optional[NotificationService] = None, middlewares=None
) -> FastAPI:
    """
    Create a FastAPI test application with the given routers and an optional
    notification service placed on ``app.state`` the way the lifespan does.

    Args:
        routers: A router or list of routers to include in the app.
        service: Optional NotificationService exposed to route dependencies.
        middlewares: Optional list of (middleware_class, config_dict) tuples.

    Returns:
        FastAPI: A configured FastAPI application.

    Example:
        app = create_test_app(api_router, service=NotificationService(store))
    """
    app = FastAPI()

    from api.dependencies.rate_limits import setup_rate_limiter

    setup_rate_limiter(app)

    if middlewares:
        for middleware_class, middleware_config in middlewares:
            app.add_middleware(middleware_class, **middleware_config)

    if not isinstance(routers, list):
        routers = [routers]
    for router in routers:
        app.include_router(router)

    if service is not None:
        app.state.notification_service = service
        app.state.reconciler = service.reconciler

    return app

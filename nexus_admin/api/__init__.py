# HTTP layer: routers, schemas, exception handlers and the app factory

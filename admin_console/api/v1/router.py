# admin_console/api/v1/router.py
from fastapi import APIRouter
from admin_console.api.v1.endpoints import attributes, products, categories, blogs, testimonials
from admin_console.api.v1.endpoints import callbacks, notifications, media, session

api_router_v1 = APIRouter()

# Префиксы /admin/... заданы в самих роутерах
api_router_v1.include_router(attributes.router)
api_router_v1.include_router(products.router)
api_router_v1.include_router(categories.router)
api_router_v1.include_router(blogs.router)
api_router_v1.include_router(testimonials.router)
api_router_v1.include_router(callbacks.router)
api_router_v1.include_router(notifications.router)
api_router_v1.include_router(media.router)
api_router_v1.include_router(session.router)

"""
Supplement Store API
FastAPI application, routers, services and schemas.
"""

from app.routes.user import router as user_router

__all__ = ["user_router"]

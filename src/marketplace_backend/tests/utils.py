from marketplace_backend.interface.tokens import create_access_token
from marketplace_backend.model import Product, User


def module_ids_of(course: Product):
    return [module.id for module in sorted(course.modules, key=lambda m: m.order)]


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

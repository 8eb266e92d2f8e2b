from marketplace_backend.api.api_builder import CrudRouter, LookUpRouter
from marketplace_backend.interface.lessons import LessonInterface
from marketplace_backend.interface.modules import ModuleInterface
from marketplace_backend.interface.products import ProductInterface
from marketplace_backend.interface.users import UserInterface

product_router = CrudRouter(ProductInterface)
module_router = CrudRouter(ModuleInterface)
lesson_router = CrudRouter(LessonInterface)
user_router = LookUpRouter(UserInterface)

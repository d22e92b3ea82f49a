from .module_service import ModuleService

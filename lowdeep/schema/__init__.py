"""Schema 绑定与根类型判断。"""

from lowdeep.schema.binding import RootShape, SchemaBinding, declared_root_shape

__all__ = ["SchemaBinding", "RootShape", "declared_root_shape"]

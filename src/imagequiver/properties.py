"""Properties of the grouping container that holds a quiver's quads.

The commonly used container attributes are enumerated as dataclass fields.
Anything else a backend understands is kept in the `extra` pass-through map.
"""
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, Optional


@dataclass
class GroupProperties:
    visible: bool = True
    tag: str = ''
    display_name: str = ''
    user_data: Any = None
    hit_test: bool = True
    button_down_fcn: Optional[Callable] = None
    delete_fcn: Optional[Callable] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def modelled_names(cls):
        return tuple(f.name for f in fields(cls) if f.name != 'extra')

    def is_modelled(self, name: str) -> bool:
        return name in self.modelled_names()

    def store(self, name: str, value) -> None:
        if self.is_modelled(name):
            setattr(self, name, value)
        else:
            self.extra[name] = value

    def lookup(self, name: str):
        if self.is_modelled(name):
            return getattr(self, name)
        return self.extra[name]

    def as_dict(self) -> Dict[str, Any]:
        out = {name: getattr(self, name) for name in self.modelled_names()}
        out.update(self.extra)
        return out
